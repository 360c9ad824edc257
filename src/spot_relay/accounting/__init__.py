"""Cost-basis accounting."""
