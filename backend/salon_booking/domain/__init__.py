"""Pure scheduling logic: timelines, opening hours, intervals and recurrence."""
