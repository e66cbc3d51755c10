"""Outbound integrations: Google Drive/Sheets ledger storage and FCM push."""
