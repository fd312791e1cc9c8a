"""StoryTrail trail progression and validation engine."""
