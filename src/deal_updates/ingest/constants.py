"""CRM export column names (English export headers)."""

DEAL_OWNER = "Deal Owner"
DEAL_NAME = "Deal Name"
STAGE = "Stage"
ANNUAL_CONTRACT_VALUE = "Annual Contract Value"
CLOSING_DATE = "Closing Date"
MODIFIED_TIME_NOTES = "Modified Time (Notes)"
NOTE_CONTENT = "Note Content"
DESCRIPTION = "Description"

# Export column -> internal field
COLUMN_MAPPINGS: dict[str, str] = {
    DEAL_OWNER: "owner",
    DEAL_NAME: "name",
    STAGE: "stage",
    ANNUAL_CONTRACT_VALUE: "acv",
    CLOSING_DATE: "closing_date",
    MODIFIED_TIME_NOTES: "modified_date",
    NOTE_CONTENT: "note",
    DESCRIPTION: "description",
}

# Header row must carry both of these, verbatim
REQUIRED_HEADERS = (DEAL_OWNER, DEAL_NAME)

# Rows scanned for banner metadata and the header
HEADER_SCAN_ROWS = 20

MAX_OWNER_LENGTH = 100
MAX_OWNER_TOKENS = 5
