"""Membership registration backend with M-Pesa STK push reconciliation."""
