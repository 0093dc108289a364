"""One-off expense events keyed by simulation year index."""

from dataclasses import dataclass

KNOWN_CATEGORIES = ("housing", "education", "living", "insurance", "tax", "other")
CUSTOM_CATEGORY = "custom"


@dataclass(frozen=True)
class OneOffEvent:
    """A single expense (positive) or windfall (negative) in 円.

    ``category`` is one of KNOWN_CATEGORIES, or "custom" together with a label.
    """

    amount: float
    category: str = CUSTOM_CATEGORY
    label: str = ""

    def __post_init__(self):
        if self.category == CUSTOM_CATEGORY:
            if not self.label:
                raise ValueError("custom event requires a label")
        elif self.category not in KNOWN_CATEGORIES:
            raise ValueError(
                f"未知のイベント区分: {self.category!r}"
                f"（{', '.join(KNOWN_CATEGORIES)} または {CUSTOM_CATEGORY}）"
            )

    @property
    def display_label(self) -> str:
        return self.label or self.category


EventMap = dict[int, tuple[OneOffEvent, ...]]


def build_event_map(entries: list[tuple[int, OneOffEvent]]) -> EventMap:
    """Group (year_index, event) pairs into a sparse year → events map."""
    grouped: dict[int, list[OneOffEvent]] = {}
    for year_index, event in entries:
        if year_index < 0:
            raise ValueError(f"イベント年は0以上: {year_index}")
        grouped.setdefault(year_index, []).append(event)
    return {year: tuple(events) for year, events in sorted(grouped.items())}


def parse_events(s: str) -> EventMap:
    """Parse "year:amount[:label],..." (year index, 円) into an event map.

    A label matching a known category is filed under that category;
    any other label becomes a custom event.
    """
    if not s or not s.strip():
        return {}
    entries: list[tuple[int, OneOffEvent]] = []
    for pair in s.split(","):
        pair = pair.strip()
        if not pair:
            continue
        parts = pair.split(":")
        if len(parts) < 2:
            raise ValueError(f"イベント指定の形式が不正: {pair!r}（年:金額[:ラベル]）")
        year_index = int(parts[0].strip())
        amount = float(parts[1].strip())
        label = parts[2].strip() if len(parts) >= 3 else ""
        entries.append((year_index, _event_from_label(amount, label)))
    return build_event_map(entries)


def events_from_config(items: list) -> EventMap:
    """Build an event map from TOML ``[[events]]`` tables or [year, amount, label] lists."""
    entries: list[tuple[int, OneOffEvent]] = []
    for item in items:
        if isinstance(item, dict):
            year_index = int(item["year"])
            amount = float(item["amount"])
            category = item.get("category")
            label = str(item.get("label", ""))
            if category:
                event = OneOffEvent(amount, category, label)
            else:
                event = _event_from_label(amount, label)
        else:
            year_index, amount = int(item[0]), float(item[1])
            label = str(item[2]) if len(item) >= 3 else ""
            event = _event_from_label(amount, label)
        entries.append((year_index, event))
    return build_event_map(entries)


def _event_from_label(amount: float, label: str) -> OneOffEvent:
    if label in KNOWN_CATEGORIES:
        return OneOffEvent(amount, label)
    return OneOffEvent(amount, CUSTOM_CATEGORY, label or f"{amount:,.0f}円")


def event_total(events: tuple[OneOffEvent, ...]) -> float:
    return sum(e.amount for e in events)
