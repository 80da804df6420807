# Role: Post-generation gate for itinerary JSON. Three independent checks (content safety, semantic logic,
# business logic) plus a text sanitizer. Never blocking: the sanitized output is always produced and returned,
# invalid reports are only logged.

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from trip_assistant.utils.logger import get_logger

logger = get_logger(__name__)

_UNSAFE_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(suicide|kill yourself|self-harm|overdose)\b",
        r"\b(bomb|explosive|weapon|gun|knife|attack)\b",
        r"\b(drugs|cocaine|heroin|marijuana|weed|illegal)\b",
        r"\b(prostitution|escort|adult services|strip club)\b",
        r"\b(terrorism|terrorist|extremist|radical)\b",
        r"\b(hate speech|racial slur|offensive language)\b",
        r"\b(scam|fraud|fake|illegal activity)\b",
        r"\b(dangerous|unsafe|risky|avoid at all costs)\b",
    )
)

_PROMO_PATTERN = re.compile(r"\b(buy now|click here|limited time|special offer)\b", re.IGNORECASE)
MAX_PROMO_PHRASES = 3

MAX_ACTIVITIES_PER_DAY = 15
BUDGET_CATEGORIES = ("accommodation", "food", "transport", "activities")
MIN_REASONABLE_BUDGET = 50
MAX_REASONABLE_BUDGET = 1_000_000

_TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE)
_NUMBER_PATTERN = re.compile(r"\d[\d,]*(?:\.\d+)?")
_DAYS_PATTERN = re.compile(r"(\d+)\s*-?\s*days?\b", re.IGNORECASE)

# Applied in this order.
_SANITIZE_RULES = (
    (re.compile(r"<\s*script\b[^>]*>[\s\S]*?<\s*/\s*script\s*>", re.IGNORECASE), ""),
    (re.compile(r"<\s*style\b[^>]*>[\s\S]*?<\s*/\s*style\s*>", re.IGNORECASE), ""),
    (re.compile(r"<\s*[^>]*>"), ""),
    (re.compile(r"javascript\s*:", re.IGNORECASE), ""),
    (re.compile(r"on\w+\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE), ""),
    (re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|UNION)\b", re.IGNORECASE), ""),
)
_WHITESPACE = re.compile(r"\s+")
_RESIDUAL_INJECTION = (
    re.compile(r"ignore\s+(previous|all|any)\s+instructions?", re.IGNORECASE),
    re.compile(r"system\s*:", re.IGNORECASE),
)


@dataclass(frozen=True)
class CheckResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class ValidationReport:
    content_safety_errors: List[str]
    content_safety_warnings: List[str]
    semantic_errors: List[str]
    semantic_warnings: List[str]
    business_logic_errors: List[str]
    business_logic_warnings: List[str]
    sanitized_output: str

    @property
    def is_valid(self) -> bool:
        return not (self.content_safety_errors or self.semantic_errors or self.business_logic_errors)

    @property
    def errors(self) -> List[str]:
        return self.content_safety_errors + self.semantic_errors + self.business_logic_errors

    @property
    def warnings(self) -> List[str]:
        return self.content_safety_warnings + self.semantic_warnings + self.business_logic_warnings


def parse_time(value: Any) -> Optional[int]:
    """Minutes since midnight for "HH:MM" with optional AM/PM; None when the text has no clock time."""
    if not isinstance(value, str):
        return None
    match = _TIME_PATTERN.search(value)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    meridiem = (match.group(3) or "").upper()

    if meridiem == "PM" and hours != 12:
        hours += 12
    if meridiem == "AM" and hours == 12:
        hours = 0
    return hours * 60 + minutes


def extract_number(value: Any) -> Optional[float]:
    # "$2,500 USD" -> 2500.0; thousands separators are stripped.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if not isinstance(value, str):
        return None
    match = _NUMBER_PATTERN.search(value)
    if not match:
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        return None


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def validate_content_safety(text: str) -> CheckResult:
    errors: List[str] = []
    warnings: List[str] = []

    for pattern in _UNSAFE_PATTERNS:
        match = pattern.search(text or "")
        if match:
            errors.append(f"Potentially unsafe content detected: '{match.group(0)}'")

    promo_hits = len(_PROMO_PATTERN.findall(text or ""))
    if promo_hits > MAX_PROMO_PHRASES:
        warnings.append(f"Excessive promotional content detected ({promo_hits} phrases)")

    return CheckResult(errors=errors, warnings=warnings)


def validate_semantic_logic(doc: Any) -> CheckResult:
    # 1) Structure: tripOverview and dailyItinerary must exist
    # 2) Day numbers must match 1-based position (error); empty / overfull days and time order (warnings)
    # 3) Accommodation count vs day count, budget categories (warnings)
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(doc, dict) or not doc.get("tripOverview") or not isinstance(doc.get("dailyItinerary"), list):
        errors.append("Missing essential itinerary structure")
        return CheckResult(errors=errors, warnings=warnings)

    days = doc["dailyItinerary"]
    for position, day in enumerate(days, start=1):
        if not isinstance(day, dict):
            errors.append(f"Day {position} is not an object")
            continue

        number = day.get("day")
        if number != position:
            errors.append(f"Day {position} has incorrect day number: {number}")

        activities = _as_list(day.get("activities"))
        if not activities:
            warnings.append(f"Day {number} has no activities")
        if len(activities) > MAX_ACTIVITIES_PER_DAY:
            warnings.append(f"Day {number} has too many activities ({len(activities)})")

        # Key line: AM/PM ambiguity is common, so ordering issues warn; unparsable times are skipped.
        for current, following in zip(activities, activities[1:]):
            if not (isinstance(current, dict) and isinstance(following, dict)):
                continue
            current_time = parse_time(current.get("time"))
            next_time = parse_time(following.get("time"))
            if current_time is None or next_time is None:
                continue
            if current_time >= next_time:
                warnings.append(
                    f"Day {number}: Activity time sequence issue - {current.get('time')} to {following.get('time')}"
                )

    accommodations = doc.get("accommodations")
    if isinstance(accommodations, list):
        if not accommodations:
            warnings.append("No accommodations provided")
        if len(accommodations) > max(len(days), 1) + 2:
            warnings.append("Too many accommodation options provided")

    budget = doc.get("budgetBreakdown")
    if isinstance(budget, dict):
        for category in BUDGET_CATEGORIES:
            if not budget.get(category):
                warnings.append(f"Missing {category} budget information")

    return CheckResult(errors=errors, warnings=warnings)


def _duration_days(duration: Any) -> Optional[int]:
    if not isinstance(duration, str):
        return None
    match = _DAYS_PATTERN.search(duration)
    return int(match.group(1)) if match else None


def validate_business_logic(doc: Any) -> CheckResult:
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(doc, dict):
        return CheckResult(errors=errors, warnings=warnings)

    days = _as_list(doc.get("dailyItinerary"))
    day_count = len(days)
    overview = doc.get("tripOverview") if isinstance(doc.get("tripOverview"), dict) else {}

    # 1) Stated duration vs generated day count
    stated = _duration_days(overview.get("duration"))
    if stated is not None and doc.get("dailyItinerary") is not None:
        difference = abs(day_count - stated)
        if stated > 10 and day_count < 5:
            # Key line: long trips squeezed into a few days are a generation-capacity shortfall, not a logic defect.
            warnings.append(
                f"Generation capacity shortfall: stated duration ({overview.get('duration')}) vs itinerary days "
                f"({day_count}), difference {difference} days"
            )
        elif difference > 5:
            errors.append(
                f"Major mismatch between stated duration ({overview.get('duration')}) and itinerary days "
                f"({day_count}), difference {difference} days"
            )
        elif difference > 2:
            warnings.append(
                f"Moderate mismatch between stated duration ({overview.get('duration')}) and itinerary days "
                f"({day_count}), difference {difference} days"
            )
        elif difference == 2:
            logger.info("Minor duration difference stated=%s generated=%d", overview.get("duration"), day_count)

    # 2) Budget total sanity (warnings only, currency is ambiguous)
    budget = doc.get("budgetBreakdown")
    if isinstance(budget, dict) and budget.get("total"):
        total = extract_number(budget["total"])
        if total is not None:
            if total < MIN_REASONABLE_BUDGET:
                warnings.append(f"Budget seems unrealistically low: {budget['total']}")
            if total > MAX_REASONABLE_BUDGET:
                warnings.append(f"Budget seems unrealistically high: {budget['total']}")

    # 3) Weak sections
    transport = doc.get("transportation")
    if isinstance(transport, dict):
        if not _as_list(transport.get("localTransport")):
            warnings.append("No local transportation options provided")
        getting_there = transport.get("gettingThere")
        if not isinstance(getting_there, str) or len(getting_there) < 10:
            warnings.append("Insufficient transportation details provided")

    restaurants = doc.get("restaurants")
    if isinstance(restaurants, list):
        if not restaurants:
            warnings.append("No restaurant recommendations provided")
        if len(restaurants) > max(day_count, 1) * 5:
            warnings.append("Too many restaurant recommendations provided")

    info = doc.get("practicalInfo")
    if isinstance(info, dict):
        weather = info.get("weather")
        if not isinstance(weather, str) or len(weather) < 10:
            warnings.append("Insufficient weather information provided")
        currency = info.get("currency")
        if not isinstance(currency, str) or len(currency) < 3:
            warnings.append("Missing or insufficient currency information")
        if not _as_list(info.get("packingEssentials")):
            warnings.append("No packing essentials provided")

    return CheckResult(errors=errors, warnings=warnings)


def sanitize_output(text: str) -> str:
    # 1) markup (script/style blocks, then any tag)  2) javascript: and inline handlers
    # 3) SQL keywords  4) whitespace  5) residual override phrasing and "system:" prefixes
    sanitized = text or ""
    for pattern, replacement in _SANITIZE_RULES:
        sanitized = pattern.sub(replacement, sanitized)

    sanitized = _WHITESPACE.sub(" ", sanitized).strip()

    for pattern in _RESIDUAL_INJECTION:
        sanitized = pattern.sub("", sanitized)
    return sanitized


def sanitize_document(value: Any) -> Any:
    # Sanitizes string leaves only; keys, numbers and the nesting are left as they are.
    if isinstance(value, str):
        return sanitize_output(value)
    if isinstance(value, dict):
        return {key: sanitize_document(item) for key, item in value.items()}
    if isinstance(value, list):
        return [sanitize_document(item) for item in value]
    return value


class OutputValidator:
    def validate(self, raw_text: str) -> ValidationReport:
        # 1) Content safety over the raw text
        # 2) Parse JSON; unparsable output is a semantic hard error and is sanitized as plain text
        # 3) Sanitize every string value of the document, then re-serialize
        # 4) Semantic + business checks over the sanitized document, which is what the caller receives
        safety = validate_content_safety(raw_text)

        doc: Optional[Dict[str, Any]] = None
        try:
            parsed = json.loads(raw_text or "")
            doc = parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            doc = None

        if doc is None:
            sanitized = sanitize_output(raw_text)
            semantic = CheckResult(errors=["Invalid JSON format in model output"])
            business = CheckResult()
        else:
            # Key line: markup is stripped per value, so a stray "<" in one value can never eat JSON structure.
            clean_doc = sanitize_document(doc)
            sanitized = json.dumps(clean_doc, ensure_ascii=False)
            semantic = validate_semantic_logic(clean_doc)
            business = validate_business_logic(clean_doc)

        report = ValidationReport(
            content_safety_errors=safety.errors,
            content_safety_warnings=safety.warnings,
            semantic_errors=semantic.errors,
            semantic_warnings=semantic.warnings,
            business_logic_errors=business.errors,
            business_logic_warnings=business.warnings,
            sanitized_output=sanitized,
        )
        self._log(report, raw_text)
        return report

    def _log(self, report: ValidationReport, raw_text: str) -> None:
        logger.info(
            "Output validation valid=%s length=%d safety_errors=%d semantic_errors=%d business_errors=%d warnings=%d",
            report.is_valid,
            len(raw_text or ""),
            len(report.content_safety_errors),
            len(report.semantic_errors),
            len(report.business_logic_errors),
            len(report.warnings),
        )
        if not report.is_valid:
            logger.warning("Output validation failed errors=%s", report.errors)
