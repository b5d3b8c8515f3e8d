"""
Delivery services: the fulfillment façade, its authorization policy,
overdue-payment reminders and process bootstrap.
"""
