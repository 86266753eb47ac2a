"""RoamNY auto-stamper: walking tour video to geocoded route."""
