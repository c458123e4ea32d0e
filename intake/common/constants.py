"""Application constants."""

USER_AGENT = "sda-form-intake/1.0 (+forms-sync; contact: configured-email)"

PARTICIPANT = "participant"
LANDLORD = "landlord"
INVESTOR = "investor"
PROPERTY = "property"
INQUIRY = "inquiry"
UNKNOWN = "unknown"
ENTITY_TYPES = (PARTICIPANT, LANDLORD, INVESTOR, PROPERTY, INQUIRY, UNKNOWN)

FILE_ASSET = "file_asset"

ACTIONS = {
    "extract_participants": PARTICIPANT,
    "extract_landlords": LANDLORD,
    "extract_investors": INVESTOR,
    "process_historical": None,
}

SOURCE_WEBHOOK = "webhook"
SOURCE_BATCH = "historical_batch"

EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "form_id",
    "submission_id",
    "entity_type",
    "entity_id",
    "event",
    "status",
    "action",
    "count",
    "error_code",
    "message",
)
