"""
Pydantic schema of the Subly application dataset.

Used by AppDataValidator to accept a pulled snapshot, fill defaults for
fields added in later releases and reject foreign or corrupt files.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class AppModel(BaseModel):
    """Base model mapping snake_case fields to the camelCase wire keys."""

    class Config:
        """Pydantic config."""
        alias_generator = to_camel
        populate_by_name = True
        # Reject "9.99" for a number or "yes" for a flag instead of coercing
        strict = True


class PaymentRecord(AppModel):
    """One entry of a subscription's payment history."""
    id: str
    date: str  # YYYY-MM-DD
    amount: float
    currency_id: str
    note: str = ""


class Subscription(AppModel):
    """A recurring subscription."""
    id: str
    name: str
    logo: str = ""
    price: float = 0
    currency_id: str
    next_payment: str  # YYYY-MM-DD
    start_date: str
    cycle: Literal[1, 2, 3, 4] = 3  # days, weeks, months, years
    frequency: int = Field(default=1, ge=1)
    notes: str = ""
    payment_method_id: str = ""
    payer_user_id: str = ""
    category_id: str = "cat-1"
    notify: bool = True
    notify_days_before: float = 1
    last_notified_date: str = ""
    inactive: bool = False
    auto_renew: bool = True
    url: str = ""
    cancellation_date: Optional[str] = None
    replacement_subscription_id: Optional[str] = None
    created_at: str = ""
    tags: List[str] = Field(default_factory=list)
    favorite: bool = False
    payment_history: List[PaymentRecord] = Field(default_factory=list)


class Expense(AppModel):
    """A one-off expense."""
    id: str
    name: str
    amount: float = 0
    currency_id: str
    date: str
    category_id: str = "cat-1"
    payment_method_id: str = ""
    payer_user_id: str = ""
    tags: List[str] = Field(default_factory=list)
    notes: str = ""
    created_at: str = ""


class Category(AppModel):
    id: str
    name: str
    icon: str = ""
    order: int = 0
    i18n_key: str = ""


class Currency(AppModel):
    id: str
    name: str
    symbol: str
    code: str
    rate: float = 1
    order: int = 0
    i18n_key: str = ""


class HouseholdMember(AppModel):
    id: str
    name: str
    email: str = ""
    order: int = 0


class PaymentMethod(AppModel):
    id: str
    name: str
    icon: str = "💳"
    enabled: bool = True
    order: int = 0
    i18n_key: str = ""


class Tag(AppModel):
    id: str
    name: str
    favorite: bool = True
    order: int = 0
    i18n_key: str = ""


class DashboardWidget(AppModel):
    id: str
    visible: bool = True


class CustomColors(AppModel):
    main: str = ""
    accent: str = ""
    hover: str = ""


class Settings(AppModel):
    """User preferences stored with the dataset."""
    dark_theme: Literal[0, 1, 2] = 2
    color_theme: str = "blue"
    monthly_price: bool = False
    convert_currency: bool = False
    hide_disabled: bool = False
    disabled_to_bottom: bool = True
    show_original_price: bool = False
    show_subscription_progress: bool = True
    language: str = "en"
    main_currency_id: str = "cur-2"
    default_category_id: str = "cat-1"
    default_payment_method_id: str = "pm-1"
    budget: float = 0
    notify_days_before: float = 1
    notification_title: str = "Subly — Payment Reminder"
    notification_body_due_today: str = 'Payment for "{name}" is due today!'
    notification_body_due_soon: str = 'Payment for "{name}" is due in {days} day(s).'
    notification_overdue_title: str = "Subly — Overdue Payment"
    notification_overdue_body: str = '"{name}" is overdue by {days} day(s). Please renew manually.'
    notification_schedule: Literal["any", "morning", "evening", "custom"] = "any"
    notification_custom_hour: int = Field(default=9, ge=0, le=23)
    recurring_notifications: bool = True
    currency_auto_update: bool = False
    currency_update_targets: List[str] = Field(default_factory=list)
    last_currency_update: str = ""
    dashboard_widgets: List[DashboardWidget] = Field(default_factory=list)
    subscription_view_mode: Literal["default", "compact", "expanded"] = "default"
    subscription_group_by: Literal["none", "category", "payment_method"] = "none"
    custom_colors: CustomColors = Field(default_factory=CustomColors)


class AppData(AppModel):
    """The full dataset synced between devices."""
    subscriptions: List[Subscription] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    currencies: List[Currency] = Field(default_factory=list)
    household: List[HouseholdMember] = Field(default_factory=list)
    payment_methods: List[PaymentMethod] = Field(default_factory=list)
    tags: List[Tag] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)
    fixer_api_key: str = ""
    fixer_provider: int = 0
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    telegram_enabled: bool = False
    initialized: bool = True
