"""
Referral system configuration: plan prices, per-level commission rates and
the maximum depth of the referral chain.

RateTable is the only place commission percentages are looked up. The
distributor and the earnings preview both consult the same instance, so a
rate change shows up in both at once.
"""
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Mapping, Optional

# Maximum depth of the referral tree (how many levels get commissions)
MAX_REFERRAL_DEPTH = 10

MINOR_UNIT = Decimal("0.01")


class PlanType(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"


def round_money(value: Decimal) -> Decimal:
    """Round half-up to the currency's minor unit."""
    return Decimal(value).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


class RateTable:
    def __init__(
        self,
        plans: Mapping[str, Decimal],
        rates: Mapping[str, Mapping[int, Decimal]],
        max_depth: int = MAX_REFERRAL_DEPTH,
        plan_labels: Optional[Mapping[str, str]] = None,
    ):
        self.plans = {str(k): Decimal(v) for k, v in plans.items()}
        self.rates = {str(k): {int(lvl): Decimal(r) for lvl, r in v.items()} for k, v in rates.items()}
        self.max_depth = max_depth
        self.plan_labels = dict(plan_labels or {})

    def _key(self, plan_type) -> str:
        return plan_type.value if isinstance(plan_type, PlanType) else str(plan_type)

    def is_known_plan(self, plan_type) -> bool:
        return self._key(plan_type) in self.plans

    def rate(self, plan_type, level: int) -> Decimal:
        """Commission percentage for a plan tier at a given level. 0 when not configured."""
        if level < 1 or level > self.max_depth:
            return Decimal("0")
        return self.rates.get(self._key(plan_type), {}).get(level, Decimal("0"))

    def plan_amount(self, plan_type) -> Decimal:
        key = self._key(plan_type)
        if key not in self.plans:
            raise KeyError(f"Unknown plan type: {key}")
        return self.plans[key]

    def commission_amount(self, plan_type, level: int) -> Decimal:
        # Rounded once per ancestor; nothing carries over between levels.
        return round_money(self.plan_amount(plan_type) * self.rate(plan_type, level) / Decimal("100"))

    def configured_levels(self, plan_type) -> List[int]:
        return sorted(lvl for lvl in self.rates.get(self._key(plan_type), {}) if lvl <= self.max_depth)

    def potential_earnings(self, plan_type) -> Dict:
        """What a full chain would earn on one purchase of this plan."""
        plan_amount = self.plan_amount(plan_type)
        levels = []
        total = Decimal("0")
        for level in self.configured_levels(plan_type):
            amount = self.commission_amount(plan_type, level)
            total += amount
            levels.append({"level": level, "percentage": self.rate(plan_type, level), "amount": amount})
        return {
            "plan_type": self._key(plan_type),
            "plan_amount": plan_amount,
            "levels": levels,
            "total_commission": total,
            "company_amount": plan_amount - total,
        }

    def summary(self) -> Dict:
        return {
            "max_referral_depth": self.max_depth,
            "plans": {
                key: {"amount": amount, "label": self.plan_labels.get(key, key.title())}
                for key, amount in self.plans.items()
            },
            "breakdown": {key: self.potential_earnings(key) for key in self.plans},
        }


BASIC_PLAN_COMMISSION_RATES = {
    1: Decimal("10"),   # direct referrals
    2: Decimal("5"),
    3: Decimal("2"),
    4: Decimal("1"),
    5: Decimal("0.5"),
}

PREMIUM_PLAN_COMMISSION_RATES = {
    1: Decimal("15"),   # direct referrals
    2: Decimal("7"),
    3: Decimal("3"),
    4: Decimal("2"),
    5: Decimal("1"),
    6: Decimal("0.5"),
    7: Decimal("0.5"),
}

DEFAULT_RATE_TABLE = RateTable(
    plans={PlanType.BASIC.value: Decimal("800"), PlanType.PREMIUM.value: Decimal("2500")},
    rates={
        PlanType.BASIC.value: BASIC_PLAN_COMMISSION_RATES,
        PlanType.PREMIUM.value: PREMIUM_PLAN_COMMISSION_RATES,
    },
    plan_labels={PlanType.BASIC.value: "Basic Plan", PlanType.PREMIUM.value: "Premium Plan"},
)
