"""Project-wide constants."""

METRICS = ["temperature", "precipitation", "humidity"]

TREND_INCREASING = "increasing"
TREND_DECREASING = "decreasing"
TREND_STABLE = "stable"

RISK_LOW = "low"
RISK_MEDIUM = "medium"
RISK_HIGH = "high"

# Priority buckets on the normalized (0-1) severity scale
PRIORITY_BUCKETS = [
    (0.7, RISK_HIGH),
    (0.4, RISK_MEDIUM),
]

SEASON_MONTHS = {
    "summer": [12, 1, 2],
    "autumn": [3, 4, 5],
    "winter": [6, 7, 8],
    "spring": [9, 10, 11],
}

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


# Presentation-only tips, rotated by calendar day
DAILY_TIPS = [
    "Check soil moisture at root depth before irrigating.",
    "Scout field edges first; pests often arrive from borders.",
    "Irrigate early in the morning to cut evaporation losses.",
    "Keep drainage channels clear ahead of heavy rain.",
    "Rotate crops to break pest and disease cycles.",
    "Mulch exposed soil to hold moisture in the dry season.",
    "Record rainfall daily; trends matter more than single days.",
]
