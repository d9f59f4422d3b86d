"""Virtual-host configuration model for Passenger-style application hosting."""
