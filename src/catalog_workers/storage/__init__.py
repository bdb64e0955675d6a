"""SQLite storage plumbing shared by catalog repositories."""
