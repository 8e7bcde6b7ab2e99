"""Domain services: orchestration of repositories, workflow rules and change notifications."""
