"""Body metric profiles and formula-based expenditure."""
