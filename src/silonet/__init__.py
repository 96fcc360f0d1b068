"""Two-stage silo network optimizer: MST network build plus balanced truck assignment."""
