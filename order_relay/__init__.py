"""Order relay: receives order webhooks and forwards accounting transactions."""
