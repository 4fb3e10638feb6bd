"""newsfeed — source-feed ingestion and user-feed composition."""
