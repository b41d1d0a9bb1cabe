"""Leave module — ledger model, allocation engine, projections."""
