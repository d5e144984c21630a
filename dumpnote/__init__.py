"""dumpnote: notes and note sets over a small SQLite query layer."""
