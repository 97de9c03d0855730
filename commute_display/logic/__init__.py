"""Time normalization, timetable generation and next-arrival selection."""
