"""
Mock integration clients.

These clients return fake (but realistic) responses without calling any external API.
They are used when:
- Flutterwave credentials are not configured
- We want to drive the verification poller end-to-end without a running API

Important:
- Mock clients must follow the SAME interface as real HTTP clients.
- Mock clients should return data shaped according to payverify/integrations/contracts/*
"""
