"""Canonical data models.

Every import processor normalizes its source rows into these records, and
the calculation engine reads only these records. Per-store daily data is
held as a two-level mapping ``store_id -> day -> entry``.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

# store_id -> day (1-31) -> entry
StoreDayMap = dict[str, dict[int, T]]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DataType(str, Enum):
    """Kind of source file. Each member has exactly one processor."""

    PURCHASE = "purchase"
    SALES = "sales"
    DISCOUNT = "discount"
    SALES_DISCOUNT = "salesDiscount"
    PREV_YEAR_SALES_DISCOUNT = "prevYearSalesDiscount"
    INITIAL_SETTINGS = "initialSettings"
    BUDGET = "budget"
    CONSUMABLES = "consumables"
    INTER_STORE_IN = "interStoreIn"
    INTER_STORE_OUT = "interStoreOut"
    FLOWERS = "flowers"
    DIRECT_PRODUCE = "directProduce"
    CATEGORY_TIME_SALES = "categoryTimeSales"
    DEPARTMENT_KPI = "departmentKpi"


class CategoryType(str, Enum):
    """Purchase category used for category totals."""

    MARKET = "market"
    LFC = "lfc"
    SALAD_CLUB = "saladClub"
    PROCESSED = "processed"
    DIRECT_DELIVERY = "directDelivery"
    FLOWERS = "flowers"
    DIRECT_PRODUCE = "directProduce"
    CONSUMABLES = "consumables"
    INTER_STORE = "interStore"
    INTER_DEPARTMENT = "interDepartment"
    OTHER = "other"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS: dict[CategoryType, str] = {
    CategoryType.MARKET: "市場",
    CategoryType.LFC: "LFC",
    CategoryType.SALAD_CLUB: "サラダクラブ",
    CategoryType.PROCESSED: "加工品",
    CategoryType.DIRECT_DELIVERY: "直伝",
    CategoryType.FLOWERS: "花",
    CategoryType.DIRECT_PRODUCE: "産直",
    CategoryType.CONSUMABLES: "消耗品",
    CategoryType.INTER_STORE: "店間移動",
    CategoryType.INTER_DEPARTMENT: "部門間移動",
    CategoryType.OTHER: "その他",
}

# Display order
CATEGORY_ORDER: list[CategoryType] = list(CategoryType)

# Custom supplier category label (settings) -> CategoryType
CUSTOM_CATEGORY_TYPES: dict[str, CategoryType] = {
    "市場仕入": CategoryType.MARKET,
    "LFC": CategoryType.LFC,
    "サラダ": CategoryType.SALAD_CLUB,
    "加工品": CategoryType.PROCESSED,
    "消耗品": CategoryType.CONSUMABLES,
    "直伝": CategoryType.DIRECT_DELIVERY,
    "その他": CategoryType.OTHER,
}


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


class CostPricePair(BaseModel):
    """Cost / selling-price pair."""

    cost: float = 0.0
    price: float = 0.0

    def __add__(self, other: CostPricePair) -> CostPricePair:
        return CostPricePair(cost=self.cost + other.cost, price=self.price + other.price)

    @property
    def markup_rate(self) -> float:
        """(price - cost) / price, 0 when there is no price."""
        if self.price == 0:
            return 0.0
        return (self.price - self.cost) / self.price


ZERO_COST_PRICE_PAIR = CostPricePair()


def add_cost_price_pairs(*pairs: CostPricePair) -> CostPricePair:
    total = CostPricePair()
    for pair in pairs:
        total = total + pair
    return total


class CodeName(BaseModel):
    code: str
    name: str


class Store(BaseModel):
    """A store discovered from file headers.

    ``id`` is the numeric code with leading zeros stripped ("0001" -> "1").
    """

    id: str
    code: str
    name: str


class Supplier(BaseModel):
    code: str
    name: str


class SupplierTotal(BaseModel):
    supplier_code: str
    supplier_name: str
    category: CategoryType = CategoryType.OTHER
    cost: float = 0.0
    price: float = 0.0
    markup_rate: float = 0.0


# ---------------------------------------------------------------------------
# Source entries (one per store per day)
# ---------------------------------------------------------------------------


class SupplierEntry(BaseModel):
    name: str
    cost: float = 0.0
    price: float = 0.0


class PurchaseDayEntry(BaseModel):
    suppliers: dict[str, SupplierEntry] = Field(default_factory=dict)
    total: CostPricePair = Field(default_factory=CostPricePair)


class SalesDayEntry(BaseModel):
    sales: float = 0.0


class DiscountDayEntry(BaseModel):
    sales: float = 0.0
    # stored as an absolute value
    discount: float = 0.0


class TransferRecord(BaseModel):
    day: int
    cost: float
    price: float
    from_store_id: str
    to_store_id: str
    is_department_transfer: bool = False


class TransferDayEntry(BaseModel):
    inter_store_in: list[TransferRecord] = Field(default_factory=list)
    inter_store_out: list[TransferRecord] = Field(default_factory=list)
    inter_department_in: list[TransferRecord] = Field(default_factory=list)
    inter_department_out: list[TransferRecord] = Field(default_factory=list)


class SpecialSalesDayEntry(BaseModel):
    """Flowers / direct-produce day total. Cost is derived from a cost rate."""

    price: float = 0.0
    cost: float = 0.0


class ConsumableItem(BaseModel):
    account_code: str
    item_code: str
    item_name: str
    quantity: float = 0.0
    cost: float = 0.0


class ConsumableDailyRecord(BaseModel):
    cost: float = 0.0
    items: list[ConsumableItem] = Field(default_factory=list)


class TimeSlotEntry(BaseModel):
    hour: int
    quantity: float = 0.0
    amount: float = 0.0


class CategoryTimeSalesRecord(BaseModel):
    day: int
    store_id: str
    department: CodeName
    line: CodeName
    klass: CodeName
    time_slots: list[TimeSlotEntry] = Field(default_factory=list)
    total_quantity: float = 0.0
    total_amount: float = 0.0

    @property
    def key(self) -> tuple[int, str, str, str, str]:
        """Identity used when merging files: (day, store, dept, line, class)."""
        return (
            self.day,
            self.store_id,
            self.department.code,
            self.line.code,
            self.klass.code,
        )


class DepartmentKpiRecord(BaseModel):
    dept_code: str
    dept_name: str = ""
    gp_rate_budget: float = 0.0
    gp_rate_actual: float = 0.0
    gp_rate_variance: float = 0.0
    markup_rate: float = 0.0
    discount_rate: float = 0.0
    sales_budget: float = 0.0
    sales_actual: float = 0.0
    sales_variance: float = 0.0
    sales_achievement: float = 0.0
    opening_inventory: float = 0.0
    closing_inventory: float = 0.0
    gp_rate_landing: float = 0.0
    sales_landing: float = 0.0


class InventoryConfig(BaseModel):
    store_id: str
    opening_inventory: float | None = None
    closing_inventory: float | None = None
    gross_profit_budget: float | None = None


class BudgetData(BaseModel):
    store_id: str
    daily: dict[int, float] = Field(default_factory=dict)
    total: float = 0.0


# ---------------------------------------------------------------------------
# Imported aggregate
# ---------------------------------------------------------------------------


class ImportedData(BaseModel):
    """Everything normalized from the imported files for one month.

    Instances are treated as immutable: the import service returns a new
    aggregate for every processed file.
    """

    stores: dict[str, Store] = Field(default_factory=dict)
    suppliers: dict[str, Supplier] = Field(default_factory=dict)
    purchase: dict[str, dict[int, PurchaseDayEntry]] = Field(default_factory=dict)
    sales: dict[str, dict[int, SalesDayEntry]] = Field(default_factory=dict)
    discount: dict[str, dict[int, DiscountDayEntry]] = Field(default_factory=dict)
    prev_year_sales: dict[str, dict[int, SalesDayEntry]] = Field(default_factory=dict)
    prev_year_discount: dict[str, dict[int, DiscountDayEntry]] = Field(
        default_factory=dict
    )
    inter_store_in: dict[str, dict[int, TransferDayEntry]] = Field(default_factory=dict)
    inter_store_out: dict[str, dict[int, TransferDayEntry]] = Field(default_factory=dict)
    flowers: dict[str, dict[int, SpecialSalesDayEntry]] = Field(default_factory=dict)
    direct_produce: dict[str, dict[int, SpecialSalesDayEntry]] = Field(
        default_factory=dict
    )
    consumables: dict[str, dict[int, ConsumableDailyRecord]] = Field(default_factory=dict)
    category_time_sales: list[CategoryTimeSalesRecord] = Field(default_factory=list)
    department_kpi: list[DepartmentKpiRecord] = Field(default_factory=list)
    settings: dict[str, InventoryConfig] = Field(default_factory=dict)
    budget: dict[str, BudgetData] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.stores or self.purchase or self.sales)

    def prev_year_daily_sales(self) -> dict[str, dict[int, float]]:
        """store_id -> day -> previous-year sales, for alert evaluation."""
        return {
            store_id: {day: entry.sales for day, entry in days.items()}
            for store_id, days in self.prev_year_sales.items()
        }


def create_empty_imported_data() -> ImportedData:
    return ImportedData()


# ---------------------------------------------------------------------------
# Daily record and store result
# ---------------------------------------------------------------------------


class TransferBreakdownEntry(BaseModel):
    from_store_id: str
    to_store_id: str
    cost: float
    price: float


class TransferBreakdown(BaseModel):
    inter_store_in: list[TransferBreakdownEntry] = Field(default_factory=list)
    inter_store_out: list[TransferBreakdownEntry] = Field(default_factory=list)
    inter_department_in: list[TransferBreakdownEntry] = Field(default_factory=list)
    inter_department_out: list[TransferBreakdownEntry] = Field(default_factory=list)


class DailyRecord(BaseModel):
    """One store's figures for one day."""

    day: int
    sales: float = 0.0
    # sales excluding flowers / direct produce / delivery sales
    core_sales: float = 0.0
    # sales before discounts
    gross_sales: float = 0.0
    purchase: CostPricePair = Field(default_factory=CostPricePair)
    delivery_sales: CostPricePair = Field(default_factory=CostPricePair)
    inter_store_in: CostPricePair = Field(default_factory=CostPricePair)
    inter_store_out: CostPricePair = Field(default_factory=CostPricePair)
    inter_department_in: CostPricePair = Field(default_factory=CostPricePair)
    inter_department_out: CostPricePair = Field(default_factory=CostPricePair)
    flowers: CostPricePair = Field(default_factory=CostPricePair)
    direct_produce: CostPricePair = Field(default_factory=CostPricePair)
    consumable: ConsumableDailyRecord = Field(default_factory=ConsumableDailyRecord)
    discount_amount: float = 0.0
    discount_absolute: float = 0.0
    supplier_breakdown: dict[str, CostPricePair] = Field(default_factory=dict)
    transfer_breakdown: TransferBreakdown = Field(default_factory=TransferBreakdown)

    @property
    def total_cost(self) -> float:
        return get_daily_total_cost(self)


def get_daily_total_cost(record: DailyRecord) -> float:
    """Total cost of a day. Every profit figure derives cost from here."""
    return (
        record.purchase.cost
        + record.inter_store_in.cost
        + record.inter_store_out.cost
        + record.inter_department_in.cost
        + record.inter_department_out.cost
        + record.delivery_sales.cost
    )


class TransferDetails(BaseModel):
    inter_store_in: CostPricePair = Field(default_factory=CostPricePair)
    inter_store_out: CostPricePair = Field(default_factory=CostPricePair)
    inter_department_in: CostPricePair = Field(default_factory=CostPricePair)
    inter_department_out: CostPricePair = Field(default_factory=CostPricePair)
    net_transfer: CostPricePair = Field(default_factory=CostPricePair)


class CumulativeEntry(BaseModel):
    sales: float = 0.0
    budget: float = 0.0


class StoreResult(BaseModel):
    """Monthly result for one store (or the all-stores roll-up)."""

    store_id: str

    # ----- Inventory (actual) -----
    opening_inventory: float | None = None
    closing_inventory: float | None = None

    # ----- Sales -----
    total_sales: float = 0.0
    total_core_sales: float = 0.0
    delivery_sales_price: float = 0.0
    flower_sales_price: float = 0.0
    direct_produce_sales_price: float = 0.0
    gross_sales: float = 0.0

    # ----- Cost -----
    total_cost: float = 0.0
    inventory_cost: float = 0.0
    delivery_sales_cost: float = 0.0

    # ----- Inventory method (all sales, all purchases) -----
    inv_method_cogs: float | None = None
    inv_method_gross_profit: float | None = None
    inv_method_gross_profit_rate: float | None = None

    # ----- Estimation method (inventory sales only) -----
    # Not an actual margin: basis for the estimated closing inventory.
    est_method_cogs: float = 0.0
    est_method_margin: float = 0.0
    est_method_margin_rate: float = 0.0
    est_method_closing_inventory: float | None = None

    # ----- Discounts -----
    total_discount: float = 0.0
    discount_rate: float = 0.0
    discount_loss_cost: float = 0.0

    # ----- Markup -----
    average_markup_rate: float = 0.0
    core_markup_rate: float = 0.0

    # ----- Consumables -----
    total_consumable: float = 0.0
    consumable_rate: float = 0.0

    # ----- Budget -----
    budget: float = 0.0
    gross_profit_budget: float = 0.0
    gross_profit_rate_budget: float = 0.0
    budget_daily: dict[int, float] = Field(default_factory=dict)

    # ----- Daily -----
    daily: dict[int, DailyRecord] = Field(default_factory=dict)

    # ----- Roll-ups -----
    category_totals: dict[CategoryType, CostPricePair] = Field(default_factory=dict)
    supplier_totals: dict[str, SupplierTotal] = Field(default_factory=dict)
    transfer_details: TransferDetails = Field(default_factory=TransferDetails)

    # ----- Forecast / KPI -----
    elapsed_days: int = 0
    sales_days: int = 0
    average_daily_sales: float = 0.0
    projected_sales: float = 0.0
    projected_achievement: float = 0.0
    budget_achievement_rate: float = 0.0
    budget_progress_rate: float = 0.0
    budget_elapsed_rate: float = 0.0
    remaining_budget: float = 0.0
    daily_cumulative: dict[int, CumulativeEntry] = Field(default_factory=dict)

    def daily_sales(self) -> dict[int, float]:
        """day -> sales for the days that have a record."""
        return {day: rec.sales for day, rec in sorted(self.daily.items())}

    def daily_gross_profit(self) -> dict[int, float]:
        """day -> sales minus that day's total cost."""
        return {
            day: rec.sales - get_daily_total_cost(rec)
            for day, rec in sorted(self.daily.items())
        }
