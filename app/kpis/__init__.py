"""KPIs a business tracks, with a history of recorded values."""
