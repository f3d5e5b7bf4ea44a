DEFAULT_CONFIG = {
    "dates": {
        "two_digit_year_pivot": 30,
        "serial_min": 1,
        "serial_max": 100000,
        "min_year": 1900,
        "max_year": 2100,
    },
    "classify": {
        "sample_size": 10,
        "date_name_keywords": ["date"],
        "excluded_chart_columns": ["address", "adress", "street", "pin code", "pincode"],
    },
    "colors": {
        "strategy": "position",  # position|hash
        "palette": [
            "#3b82f6",  # blue
            "#7ab839",  # green
            "#f97316",  # orange
            "#ef4444",  # red
            "#1A2885",  # dark blue
            "#06b6d4",  # cyan
            "#f59e0b",  # amber
            "#dc2626",
            "#84cc16",
            "#059669",
            "#8b5cf6",
            "#ec4899",
            "#14b8a6",
            "#6366f1",
        ],
        "fixed": {
            "FOM": "#3b82f6",
            "LFOM": "#7ab839",
            "POS FOM": "#f97316",
            "POS LFOM": "#ef4444",
        },
    },
    "validation": {
        "max_rows": 250000,
        "small_dataset_rows": 10,
        "missing_warning_ratio": 0.95,
    },
    "timeseries": {
        "calendar": "gregorian",
        "default_granularity": "month",
    },
    "currency": "INR",
    "logging": {
        "level": "INFO",
    },
}

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

UNKNOWN_GROUP = "Unknown"
