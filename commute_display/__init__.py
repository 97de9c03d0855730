"""Always-on commute display: next departures for a fixed set of stops."""
