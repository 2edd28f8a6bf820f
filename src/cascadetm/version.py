VERSION = "0.3.0"
APP_SCHEMA_VERSION = "0.2.0"
