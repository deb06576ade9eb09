"""
Real HTTP integration clients.

These clients communicate with real external systems via HTTP:
- the marketplace API verify endpoint (used by the poller)
- the Flutterwave mobile money API (used by the payments service)

Important:
- Must implement the same interfaces as the mock clients
- Must return data shaped according to payverify/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in payverify/api/endpoints/payments.py and
scripts/watch_payment.py only.
"""
