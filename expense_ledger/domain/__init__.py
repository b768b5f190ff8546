"""Pure ledger rules: balance arithmetic, input validation, query parsing."""
