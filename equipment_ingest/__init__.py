"""Equipment inspection ingest: spreadsheet batches into SQLite plus catalog sync."""
