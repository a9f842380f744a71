"""Cart rules: storefront reconciliation engine and rule backend."""
