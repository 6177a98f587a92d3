"""Storyshelf: catalogue API with merged search and title autocomplete."""
