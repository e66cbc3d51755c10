"""Feelin Pay backend: payment event pipeline for mobile-wallet notifications."""
