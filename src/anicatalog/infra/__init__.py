"""Infrastructure: settings, database, unit of work, logging and errors."""
