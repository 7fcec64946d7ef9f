"""Phone number verification service for the messaging bot."""
