# utils/plan_limits.py
# None => unlimited
PLAN_CAPS = {
    "free": {
        "events": 1000,              # recorded analytics events per month
        "links": 30,                 # links created per month
        "folders": 0,
        "domains": 0,
        "analytics_range_days": 7,   # widest analytics window
        "retention_days": 30,        # analytics rows older than this are purged
    },
    "pro": {
        "events": 10000,
        "links": 1000,
        "folders": 5,
        "domains": 3,
        "analytics_range_days": None,
        "retention_days": 365,
    },
    "ultra": {
        "events": None,
        "links": None,
        "folders": None,
        "domains": None,
        "analytics_range_days": None,
        "retention_days": None,
    },
}

# Billing provider ids that map onto a plan
PRO_VARIANT_IDS = {441105, 415248}
PRO_PRODUCT_IDS = {441105, 306137}
ULTRA_VARIANT_IDS = {1108002, 1134595}
ULTRA_PRODUCT_IDS = {1108002}

# Percentages of the monthly event cap at which an alert is raised
EVENT_ALERT_THRESHOLDS = (80, 90, 100)
