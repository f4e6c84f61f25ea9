"""Rule-based store alerts.

Each rule compares one metric of a StoreResult with a threshold and emits
an Alert when the threshold is breached. Rules are stateless and are
re-evaluated in full on every run.

Rule types:
    gp_rate_below_target          actual rate <= target rate - threshold
    daily_sales_below_prev_year   day sales / previous-year day sales < threshold
    consumable_ratio_above        consumables / sales > threshold
    budget_achievement_below      budget progress rate < threshold
    discount_rate_above           discounts / sales > threshold
    daily_sales_anomaly           |z-score| of a day's sales > threshold

Rules can be loaded from YAML:

    rules:
      - id: gp-rate-target
        type: gp_rate_below_target
        label: Gross profit rate below target
        severity: critical
        threshold: 0.02
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel

from ..models import StoreResult
from .forecast import detect_anomalies
from .utils import safe_divide

logger = logging.getLogger("margin_sentinel.alerts")

# Absorbs float noise in rate differences such as 0.25 - 0.23
_RATE_TOLERANCE = 1e-9


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def sort_order(self) -> int:
        return {
            AlertSeverity.CRITICAL: 0,
            AlertSeverity.WARNING: 1,
            AlertSeverity.INFO: 2,
        }[self]


class AlertRuleType(str, Enum):
    GP_RATE_BELOW_TARGET = "gp_rate_below_target"
    DAILY_SALES_BELOW_PREV_YEAR = "daily_sales_below_prev_year"
    CONSUMABLE_RATIO_ABOVE = "consumable_ratio_above"
    BUDGET_ACHIEVEMENT_BELOW = "budget_achievement_below"
    DISCOUNT_RATE_ABOVE = "discount_rate_above"
    DAILY_SALES_ANOMALY = "daily_sales_anomaly"


class AlertRule(BaseModel):
    """Declarative alert rule. ``threshold`` means something different per type."""

    id: str
    type: AlertRuleType
    label: str
    description: str = ""
    severity: AlertSeverity = AlertSeverity.WARNING
    enabled: bool = True
    threshold: float


@dataclass
class Alert:
    rule_id: str
    rule_label: str
    severity: AlertSeverity
    message: str
    value: float
    threshold: float
    store_id: str | None = None
    store_name: str | None = None
    day: int | None = None

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "rule_label": self.rule_label,
            "severity": self.severity.value,
            "message": self.message,
            "value": self.value,
            "threshold": self.threshold,
            "store_id": self.store_id,
            "store_name": self.store_name,
            "day": self.day,
        }


# ---------------------------------------------------------------------------
# Default rules
# ---------------------------------------------------------------------------

DEFAULT_ALERT_RULES: list[AlertRule] = [
    AlertRule(
        id="gp-rate-target",
        type=AlertRuleType.GP_RATE_BELOW_TARGET,
        label="Gross profit rate below target",
        description="Gross profit rate is 2pt or more below target",
        severity=AlertSeverity.CRITICAL,
        threshold=0.02,
    ),
    AlertRule(
        id="daily-sales-prev-year",
        type=AlertRuleType.DAILY_SALES_BELOW_PREV_YEAR,
        label="Daily sales below 80% of last year",
        description="A day's sales fell below 80% of the same day last year",
        severity=AlertSeverity.WARNING,
        threshold=0.80,
    ),
    AlertRule(
        id="consumable-ratio",
        type=AlertRuleType.CONSUMABLE_RATIO_ABOVE,
        label="Consumables ratio too high",
        description="Consumable cost exceeds the threshold share of sales",
        severity=AlertSeverity.WARNING,
        threshold=0.03,
    ),
    AlertRule(
        id="budget-achievement",
        type=AlertRuleType.BUDGET_ACHIEVEMENT_BELOW,
        label="Budget progress behind",
        description="Sales are behind the budget accrued so far",
        severity=AlertSeverity.WARNING,
        threshold=0.90,
    ),
    AlertRule(
        id="discount-rate",
        type=AlertRuleType.DISCOUNT_RATE_ABOVE,
        label="Discount rate too high",
        description="Discounts exceed the threshold share of sales",
        severity=AlertSeverity.INFO,
        threshold=0.05,
    ),
]


def load_alert_rules(path: str | Path) -> list[AlertRule]:
    """Load alert rules from a YAML file.

    The file holds either a list of rules or a mapping with a ``rules`` key.

    Raises:
        ValueError: If the file is malformed or a rule is invalid.
    """
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if isinstance(raw, dict):
        raw = raw.get("rules")
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of alert rules")

    rules = [AlertRule.model_validate(item) for item in raw]
    logger.info("Loaded %d alert rules from %s", len(rules), path)
    return rules


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _alert(
    rule: AlertRule,
    message: str,
    value: float,
    threshold: float,
    store_id: str,
    store_name: str,
    day: int | None = None,
) -> Alert:
    return Alert(
        rule_id=rule.id,
        rule_label=rule.label,
        severity=rule.severity,
        message=message,
        value=value,
        threshold=threshold,
        store_id=store_id,
        store_name=store_name,
        day=day,
    )


def evaluate_alerts(
    store_id: str,
    store_name: str,
    result: StoreResult,
    rules: list[AlertRule],
    target_gross_profit_rate: float,
    prev_year_daily_sales: Mapping[int, float] | None = None,
) -> list[Alert]:
    """Evaluate every enabled rule against one store's result."""
    alerts: list[Alert] = []

    for rule in rules:
        if not rule.enabled:
            continue

        match rule.type:
            case AlertRuleType.GP_RATE_BELOW_TARGET:
                gp_rate = result.inv_method_gross_profit_rate
                if gp_rate is None:
                    gp_rate = result.est_method_margin_rate
                diff = target_gross_profit_rate - gp_rate
                if diff >= rule.threshold - _RATE_TOLERANCE:
                    alerts.append(
                        _alert(
                            rule,
                            f"{store_name}: gross profit rate {gp_rate * 100:.1f}% "
                            f"(target {target_gross_profit_rate * 100:.1f}%, "
                            f"gap -{diff * 100:.1f}pt)",
                            gp_rate,
                            target_gross_profit_rate - rule.threshold,
                            store_id,
                            store_name,
                        )
                    )

            case AlertRuleType.DAILY_SALES_BELOW_PREV_YEAR:
                if not prev_year_daily_sales:
                    continue
                for day, record in sorted(result.daily.items()):
                    prev = prev_year_daily_sales.get(day)
                    if not prev:
                        continue
                    ratio = safe_divide(record.sales, prev, 1)
                    if ratio < rule.threshold:
                        alerts.append(
                            _alert(
                                rule,
                                f"{store_name} day {day}: {ratio * 100:.0f}% of last year "
                                f"({record.sales:,.0f} / last year {prev:,.0f})",
                                ratio,
                                rule.threshold,
                                store_id,
                                store_name,
                                day=day,
                            )
                        )

            case AlertRuleType.CONSUMABLE_RATIO_ABOVE:
                if result.total_sales == 0:
                    continue
                consumable = sum(r.consumable.cost for r in result.daily.values())
                ratio = safe_divide(consumable, result.total_sales, 0)
                if ratio > rule.threshold:
                    alerts.append(
                        _alert(
                            rule,
                            f"{store_name}: consumables ratio {ratio * 100:.1f}% "
                            f"(threshold {rule.threshold * 100:.1f}%)",
                            ratio,
                            rule.threshold,
                            store_id,
                            store_name,
                        )
                    )

            case AlertRuleType.BUDGET_ACHIEVEMENT_BELOW:
                progress = result.budget_progress_rate
                if not progress:
                    continue
                if progress < rule.threshold:
                    alerts.append(
                        _alert(
                            rule,
                            f"{store_name}: budget progress {progress * 100:.1f}% "
                            f"(threshold {rule.threshold * 100:.0f}%)",
                            progress,
                            rule.threshold,
                            store_id,
                            store_name,
                        )
                    )

            case AlertRuleType.DISCOUNT_RATE_ABOVE:
                if result.total_sales == 0:
                    continue
                discount = sum(r.discount_amount for r in result.daily.values())
                rate = safe_divide(discount, result.total_sales, 0)
                if rate > rule.threshold:
                    alerts.append(
                        _alert(
                            rule,
                            f"{store_name}: discount rate {rate * 100:.1f}% "
                            f"(threshold {rule.threshold * 100:.1f}%)",
                            rate,
                            rule.threshold,
                            store_id,
                            store_name,
                        )
                    )

            case AlertRuleType.DAILY_SALES_ANOMALY:
                for anomaly in detect_anomalies(result.daily_sales(), rule.threshold):
                    alerts.append(
                        _alert(
                            rule,
                            f"{store_name} day {anomaly.day}: sales {anomaly.value:,.0f} "
                            f"(z-score {anomaly.z_score:+.2f})",
                            anomaly.z_score,
                            rule.threshold,
                            store_id,
                            store_name,
                            day=anomaly.day,
                        )
                    )

    return alerts


def evaluate_all_store_alerts(
    store_results: Mapping[str, StoreResult],
    store_names: Mapping[str, str],
    rules: list[AlertRule],
    target_gross_profit_rate: float,
    prev_year_daily_sales: Mapping[str, Mapping[int, float]] | None = None,
) -> list[Alert]:
    """Evaluate all stores and sort critical -> warning -> info.

    The sort is stable, so alerts keep per-store order within a severity.
    """
    all_alerts: list[Alert] = []
    for store_id, result in store_results.items():
        prev = prev_year_daily_sales.get(store_id) if prev_year_daily_sales else None
        all_alerts.extend(
            evaluate_alerts(
                store_id,
                store_names.get(store_id, store_id),
                result,
                rules,
                target_gross_profit_rate,
                prev_year_daily_sales=prev,
            )
        )

    all_alerts.sort(key=lambda a: a.severity.sort_order)
    return all_alerts
