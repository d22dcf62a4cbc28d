"""Field validation rules and the JSON import/export contract."""
