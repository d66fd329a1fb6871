"""Data contracts exchanged with the covariate generation and reporting layers."""
