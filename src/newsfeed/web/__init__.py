"""HTTP surface — registration, ingestion triggers, webhooks, feed reads."""
