"""Core domain - tenancy model, authorization policy and protocols."""
