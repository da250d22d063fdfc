"""Challenge template library and template resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.errors import TemplateError

from .models import ChallengeCategory, Difficulty

CHALLENGE_TEMPLATES: Dict[str, Dict[str, Dict[str, Any]]] = {
    "revenue": {
        "beat_yesterday": {
            "title": "Beat Yesterday's Revenue",
            "description": "Generate more revenue today than you did yesterday",
            "framework": "Money Velocity",
            "difficulties": {
                "easy": {"multiplier": 1.05, "xp": 25},
                "medium": {"multiplier": 1.15, "xp": 50},
                "hard": {"multiplier": 1.25, "xp": 100},
            },
            "success_criteria": "Revenue today > {target_amount}",
            "hints": [
                "Focus on your highest-converting offer",
                "Follow up with recent leads",
                "Add urgency to your current promotion",
            ],
        },
        "transaction_volume": {
            "title": "Hit Transaction Target",
            "description": "Complete a specific number of transactions today",
            "framework": "Volume Metrics",
            "difficulties": {
                "easy": {"count": 3, "xp": 20},
                "medium": {"count": 6, "xp": 40},
                "hard": {"count": 10, "xp": 80},
            },
            "success_criteria": "Complete {target_count} transactions",
            "hints": [
                "Focus on your core offer",
                "Reach out to warm leads",
                "Optimize for quick wins",
            ],
        },
        "upsell_focus": {
            "title": "Upsell Challenge",
            "description": "Successfully upsell at least one customer today",
            "framework": "4-Prong Money Model",
            "difficulties": {
                "easy": {"count": 1, "xp": 30},
                "medium": {"count": 2, "xp": 60},
                "hard": {"count": 3, "xp": 120},
            },
            "success_criteria": "Complete {target_count} successful upsells",
            "hints": [
                "Identify recent customers who could benefit from additional services",
                "Use the 5 Upsell Moments framework",
                "Focus on value, not price",
            ],
        },
    },
    "framework": {
        "grand_slam_audit": {
            "title": "Grand Slam Offer Audit",
            "description": "Analyze your current offer using the Grand Slam framework",
            "framework": "Grand Slam Offers",
            "difficulties": {
                "easy": {"xp": 40, "depth": "basic"},
                "medium": {"xp": 80, "depth": "detailed"},
                "hard": {"xp": 160, "depth": "comprehensive"},
            },
            "success_criteria": "Complete offer analysis with improvement recommendations",
            "hints": [
                "Focus on the Value Equation: Dream Outcome / (Time Delay x Effort & Sacrifice)",
                "Identify ways to increase perceived likelihood of achievement",
                "Look for ways to reduce time delay and effort required",
            ],
        },
        "constraint_identification": {
            "title": "Find Your Current Constraint",
            "description": "Identify which of the 4 Universal Constraints is limiting your business right now",
            "framework": "4 Universal Constraints",
            "difficulties": {
                "easy": {"xp": 35, "analysis": "surface"},
                "medium": {"xp": 70, "analysis": "deep"},
                "hard": {"xp": 140, "analysis": "strategic"},
            },
            "success_criteria": "Identify primary constraint with supporting evidence",
            "hints": [
                "Look at your funnel: Where do most people drop off?",
                "Analyze: Leads -> Conversion -> Fulfillment -> Profit",
                "The constraint is the step that limits everything else",
            ],
        },
        "value_ladder_design": {
            "title": "Design Your Value Ladder",
            "description": "Create or optimize your value ladder with multiple offers",
            "framework": "Value Ladder",
            "difficulties": {
                "easy": {"offers": 3, "xp": 50},
                "medium": {"offers": 5, "xp": 100},
                "hard": {"offers": 7, "xp": 200},
            },
            "success_criteria": "Design value ladder with {offer_count} complementary offers",
            "hints": [
                "Start with a low-risk, high-value entry offer",
                "Each step should naturally lead to the next",
                "Price based on value delivered, not time invested",
            ],
        },
    },
    "habit": {
        "morning_planning": {
            "title": "Morning Revenue Planning",
            "description": "Start your day by planning your revenue-generating activities",
            "framework": "Daily Systems",
            "difficulties": {
                "easy": {"duration": "5 minutes", "xp": 15},
                "medium": {"duration": "15 minutes", "xp": 30},
                "hard": {"duration": "30 minutes", "xp": 60},
            },
            "success_criteria": "Complete morning planning session",
            "hints": [
                "Identify your ONE most important revenue activity for today",
                "Block time for high-impact activities",
                "Set a specific revenue goal for the day",
            ],
        },
        "follow_up_blitz": {
            "title": "Follow-Up Blitz",
            "description": "Follow up with prospects and customers who haven't responded",
            "framework": "Sales Systems",
            "difficulties": {
                "easy": {"contacts": 5, "xp": 25},
                "medium": {"contacts": 10, "xp": 50},
                "hard": {"contacts": 20, "xp": 100},
            },
            "success_criteria": "Follow up with {contact_count} prospects",
            "hints": [
                "Use multiple channels: email, text, phone, social",
                "Provide value in every follow-up",
                "Ask specific questions to re-engage",
            ],
        },
        "metrics_review": {
            "title": "Daily Metrics Check",
            "description": "Review and record your key business metrics",
            "framework": "Data-Driven Decisions",
            "difficulties": {
                "easy": {"metrics": 3, "xp": 20},
                "medium": {"metrics": 5, "xp": 40},
                "hard": {"metrics": 8, "xp": 80},
            },
            "success_criteria": "Track {metric_count} key business metrics",
            "hints": [
                "Focus on leading indicators, not just results",
                "Track: Leads, Conversion %, Revenue, Expenses",
                "Look for patterns and trends",
            ],
        },
    },
    "constraint": {
        "lead_generation_sprint": {
            "title": "Lead Generation Sprint",
            "description": "Generate qualified leads using multiple channels",
            "framework": "Lead Generation Systems",
            "difficulties": {
                "easy": {"leads": 5, "xp": 30},
                "medium": {"leads": 15, "xp": 60},
                "hard": {"leads": 30, "xp": 120},
            },
            "success_criteria": "Generate {lead_count} qualified leads",
            "hints": [
                "Use content to attract your ideal customer",
                "Leverage social proof and testimonials",
                "Make an irresistible lead magnet",
            ],
        },
        "conversion_optimization": {
            "title": "Conversion Rate Boost",
            "description": "Improve your conversion rate through testing and optimization",
            "framework": "Conversion Optimization",
            "difficulties": {
                "easy": {"improvement": 5, "xp": 40},
                "medium": {"improvement": 10, "xp": 80},
                "hard": {"improvement": 20, "xp": 160},
            },
            "success_criteria": "Improve conversion rate by {improvement}%",
            "hints": [
                "Test different headlines and offers",
                "Address common objections upfront",
                "Add social proof and testimonials",
            ],
        },
    },
    "learning": {
        "framework_deep_dive": {
            "title": "Framework Deep Dive",
            "description": "Study and implement one specific Alex Hormozi framework",
            "framework": "Variable",
            "difficulties": {
                "easy": {"depth": "overview", "xp": 25},
                "medium": {"depth": "detailed", "xp": 50},
                "hard": {"depth": "implementation", "xp": 100},
            },
            "success_criteria": "Complete framework study and create implementation plan",
            "hints": [
                "Choose a framework that addresses your current constraint",
                "Take notes and create an action plan",
                "Identify the first 3 actions you'll take",
            ],
        },
    },
}

DEFAULT_CATEGORY = ChallengeCategory.REVENUE
DEFAULT_TEMPLATE_KEY = "beat_yesterday"

TIME_ESTIMATES: Dict[str, Dict[str, str]] = {
    "revenue": {"easy": "30 minutes", "medium": "1-2 hours", "hard": "3-4 hours"},
    "framework": {"easy": "15 minutes", "medium": "45 minutes", "hard": "2 hours"},
    "habit": {"easy": "10 minutes", "medium": "20 minutes", "hard": "45 minutes"},
    "constraint": {"easy": "45 minutes", "medium": "2 hours", "hard": "4 hours"},
    "team": {"easy": "30 minutes", "medium": "1 hour", "hard": "2 hours"},
    "learning": {"easy": "20 minutes", "medium": "1 hour", "hard": "2 hours"},
}

BASE_RESOURCES: Tuple[str, ...] = ("/business-templates", "/agents", "/progress")

CATEGORY_RESOURCES: Dict[str, Tuple[str, ...]] = {
    "revenue": ("/dashboard", "/agents/money-model-architect"),
    "framework": ("/agents/offer-analyzer", "/agents/constraint-analyzer"),
    "habit": ("/settings", "/profile"),
    "constraint": ("/agents/constraint-analyzer",),
    "team": ("/team", "/settings"),
    "learning": ("/business-templates", "/agents/coaching-methodology"),
}

# placeholder -> (config key, fallback text)
PLACEHOLDERS: Dict[str, Tuple[str, str]] = {
    "{target_count}": ("count", "1"),
    "{contact_count}": ("contacts", "5"),
    "{lead_count}": ("leads", "5"),
    "{metric_count}": ("metrics", "3"),
    "{offer_count}": ("offers", "3"),
    "{improvement}": ("improvement", "10"),
}


# difficulty values substituted into text or arithmetic
NUMERIC_VALUES: Tuple[str, ...] = ("multiplier", "amount") + tuple(key for key, _ in PLACEHOLDERS.values())


def format_currency(amount: float) -> str:
    return f"${amount:,.0f}"


@dataclass(frozen=True)
class DifficultyConfig:
    xp: int
    values: Mapping[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)


@dataclass(frozen=True)
class ChallengeTemplate:
    category: ChallengeCategory
    key: str
    title: str
    description: str
    framework: str
    success_criteria: str
    hints: Tuple[str, ...]
    difficulties: Mapping[str, Mapping[str, Any]]

    def config_for(self, difficulty: Difficulty) -> DifficultyConfig:
        raw = self.difficulties.get(difficulty.value)
        if not isinstance(raw, Mapping):
            raise TemplateError(
                f"Template '{self.key}' has no '{difficulty.value}' configuration",
                category=self.category.value,
                template=self.key,
            )
        xp = raw.get("xp")
        if not isinstance(xp, (int, float)) or isinstance(xp, bool) or xp <= 0:
            raise TemplateError(
                f"Template '{self.key}' has no positive XP reward for '{difficulty.value}'",
                category=self.category.value,
                template=self.key,
            )
        for name in NUMERIC_VALUES:
            value = raw.get(name)
            if value is not None and (not isinstance(value, (int, float)) or isinstance(value, bool)):
                raise TemplateError(
                    f"Template '{self.key}' has a non-numeric '{name}' for '{difficulty.value}'",
                    category=self.category.value,
                    template=self.key,
                )
        return DifficultyConfig(xp=int(xp), values=dict(raw))


def template_keys(category: ChallengeCategory, library: Optional[Mapping[str, Any]] = None) -> List[str]:
    library = CHALLENGE_TEMPLATES if library is None else library
    templates = library.get(category.value)
    if not isinstance(templates, Mapping):
        return []
    return list(templates.keys())


def resolve_template(
    category: ChallengeCategory,
    key: str,
    library: Optional[Mapping[str, Any]] = None,
) -> ChallengeTemplate:
    library = CHALLENGE_TEMPLATES if library is None else library
    raw = (library.get(category.value) or {}).get(key)
    if not isinstance(raw, Mapping):
        raise TemplateError(
            f"Unknown challenge template '{category.value}/{key}'",
            category=category.value,
            template=key,
        )
    if not isinstance(raw.get("difficulties"), Mapping):
        raise TemplateError(
            f"Challenge template '{category.value}/{key}' has no difficulty table",
            category=category.value,
            template=key,
        )
    try:
        return ChallengeTemplate(
            category=category,
            key=key,
            title=str(raw["title"]),
            description=str(raw["description"]),
            framework=str(raw.get("framework", "")),
            success_criteria=str(raw["success_criteria"]),
            hints=tuple(raw.get("hints") or ()),
            difficulties=raw["difficulties"],
        )
    except (KeyError, TypeError) as exc:
        raise TemplateError(
            f"Malformed challenge template '{category.value}/{key}'",
            category=category.value,
            template=key,
            missing=str(exc),
        ) from exc


def interpolate(text: str, config: DifficultyConfig, *, target_amount: Optional[float] = None) -> str:
    """Substitute difficulty values into a template sentence."""
    for placeholder, (key, fallback) in PLACEHOLDERS.items():
        value = config.get(key)
        text = text.replace(placeholder, str(value) if value is not None else fallback)

    amount = target_amount if target_amount is not None else config.get("amount")
    text = text.replace(
        "{target_amount}",
        format_currency(amount) if amount is not None else "yesterday's revenue",
    )
    multiplier = config.get("multiplier")
    text = text.replace(
        "{multiplier}",
        f"{(multiplier - 1) * 100:.0f}%" if multiplier is not None else "",
    )
    return text


def time_required(category: ChallengeCategory, difficulty: Difficulty) -> str:
    return TIME_ESTIMATES.get(category.value, {}).get(difficulty.value, "30 minutes")


def related_resources(category: ChallengeCategory) -> Tuple[str, ...]:
    return BASE_RESOURCES + CATEGORY_RESOURCES.get(category.value, ())
