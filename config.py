LLM_MODEL_GROQ = "llama-3.3-70b-versatile"
LLM_MODEL_OPENAI = "gpt-4o-mini"
LLM_TEMPERATURE = 0.2
LLM_JSON_MODE = True
LLM_MAX_TOKENS = 4000
LLM_TIMEOUT_S = 60
GROQ_BASE_URL = "https://api.groq.com/openai/v1"

# Retries for a malformed (non-JSON) model answer
LLM_MAX_RETRIES = 2
LLM_RETRY_PAUSE_S = 1.0

# --- Currency / locale ---
CURRENCY_LABEL = "DH"

# --- Forecast knobs ---
FORECAST_HORIZON_DEFAULT = "6 months"
FORECAST_HORIZON_CHOICES = ["3 months", "6 months", "12 months"]

ANOMALY_DESCRIPTION_DEFAULT = (
    "Monthly organizational costs including total cost, unit cost, and production volume."
)

# --- Upload ingestion ---
UPLOAD_TYPES = ["csv", "xlsx", "xls"]
REQUIRED_COLUMNS = ["date", "totalcost", "unitcost", "volume"]

# Canonical column -> accepted (normalized) header spellings, English + French
COLUMN_ALIASES = {
    "date": ["date", "month", "period", "mois", "periode", "datedebut"],
    "totalcost": ["totalcost", "total", "costtotal", "couttotal", "couts", "couttotaldh", "totalcostdh"],
    "unitcost": ["unitcost", "costperunit", "coutunitaire", "coutparunite", "unitcostdh", "coutunitairedh"],
    "volume": ["volume", "productionvolume", "volumedeproduction", "volumeproduction",
               "quantity", "quantite", "qty", "units", "unites"],
}

# Forecast CSV (model output) column aliases
FORECAST_DATE_ALIASES = ["date", "month", "mois", "periode"]
FORECAST_COST_ALIASES = ["forecastedcost", "forecast", "predictedcost", "coutprevu",
                         "coutprevisionnel", "prevision", "cost"]

# Excel serial day of 1970-01-01 (1900 date system)
EXCEL_EPOCH_OFFSET_DAYS = 25569

# --- Demo dataset (seeded LCG; deterministic) ---
SAMPLE_SEED = 12345
SAMPLE_MONTHS = 24
SAMPLE_END = (2024, 6, 1)
SAMPLE_BASE_FIXED_COST = 50_000
SAMPLE_BASE_VARIABLE_COST = 75
LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

# --- Analytics ---
# Fallback when the cost/volume regression has too few points
FIXED_COST_BASELINE = 50_000
FIXED_COST_MIN_POINTS = 3
MONTHLY_TREND_MONTHS = 12
UNIT_COST_BINS = 5

# Export file names (Reports tab)
EXPORT_HISTORY_NAME = "historical_costs.csv"
EXPORT_FORECAST_NAME = "forecast.csv"
