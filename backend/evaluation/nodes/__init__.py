"""Pipeline stage nodes for the evaluation graph."""
