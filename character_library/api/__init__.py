# Character Reference Library - HTTP API, job orchestration and persistence
