"""Built-in wrapped slide templates"""
from typing import Dict, List, Optional

from datewrapped.api.schemas.wrapped import SlideTemplate

TAGS = ("numbers", "money", "people", "time", "outcomes", "custom")


def _slide(id: str, title: str, description: str, *tags: str) -> SlideTemplate:
    return SlideTemplate(id=id, title=title, description=description, tags=list(tags))


DEFAULT_SLIDES: List[SlideTemplate] = [
    _slide("total-dates", "Your Dating Year in Numbers",
           "Total number of dates and unique people you met this year", "numbers"),
    _slide("meeting-sources", "How You Met",
           "Breakdown of how you met your dates - apps, mutual friends, events, etc.", "people"),
    _slide("success-rate", "Your Success Rate",
           "How many first dates led to second dates and beyond", "outcomes"),
    _slide("occupation-insights", "Professional Patterns",
           "Most common occupations among your dates", "people"),
    _slide("age-range", "Age Demographics",
           "Age distribution of your dating pool", "numbers", "people"),
    _slide("meeting-places", "Where the Magic Happens",
           "Top locations and venues for your dates", "people"),
    _slide("ghosting-stats", "The Ghost Report",
           "Analyzing the ghosting patterns in your dating life", "outcomes"),
    _slide("date-costs", "Dating Economics",
           "Your dating expenses and most lavish dates", "money"),
    _slide("red-flags", "Red Flag Collection",
           "Most common red flags you encountered", "outcomes"),
    _slide("green-flags", "Green Flag Gallery",
           "Positive patterns and traits you appreciated", "outcomes"),
    _slide("date-duration", "Time Well Spent?",
           "Average date duration and your longest dates", "time"),
    _slide("relationship-outcomes", "Where Are They Now?",
           "The various outcomes of your dating adventures", "outcomes"),
    _slide("best-dates", "Greatest Hits",
           "Your highest-rated dates and what made them special", "outcomes"),
    _slide("hotness-analysis", "Attraction Insights",
           "Analyzing your attraction patterns and preferences", "numbers", "people"),
    _slide("dating-seasons", "Dating Seasons",
           "Your most active dating months and seasonal patterns", "time"),
    _slide("platform-success", "Platform Performance",
           "Which dating platforms led to your most successful matches", "numbers", "outcomes"),
    _slide("relationship-status-insights", "Status Stories",
           "How relationship status affected your dating outcomes", "people", "outcomes"),
    _slide("rating-patterns", "Rating Revelations",
           "Analyzing the correlation between ratings and outcomes", "numbers", "outcomes"),
    _slide("cost-analysis", "Cost vs. Success",
           "How spending patterns related to date success", "money", "numbers"),
    _slide("duration-insights", "Time Investment",
           "How date duration influenced your connections", "time", "numbers"),
]

DEFAULT_SLIDES_BY_ID: Dict[str, SlideTemplate] = {s.id: s for s in DEFAULT_SLIDES}


def is_builtin(template_id: str) -> bool:
    return template_id in DEFAULT_SLIDES_BY_ID


def get_builtin(template_id: str) -> Optional[SlideTemplate]:
    return DEFAULT_SLIDES_BY_ID.get(template_id)
