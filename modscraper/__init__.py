"""Course timetable scraping: cached fetching and spreadsheet normalization."""
