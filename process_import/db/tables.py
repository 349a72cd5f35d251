"""Table names read and written by the importer (schema is managed elsewhere)."""

BATCH_TABLE = "processes_file"
ROW_TABLE = "processes_file_item"
PROCESS_TABLE = "process"
AUDIT_TABLE = "process_aud"
FLOW_TABLE = "flow"
