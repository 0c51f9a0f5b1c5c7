"""Services for food detection analysis and volume estimation."""
