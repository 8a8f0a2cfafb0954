"""Client-side data layer, admin console and gallery view model."""
