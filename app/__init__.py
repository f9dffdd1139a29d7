"""Case messaging core: chat archival, read receipts and notification batching."""
