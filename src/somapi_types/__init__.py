"""Request and response models for the SOM projection API."""
