"""audiodeck: audio source tracking, fader control and volume meters for live production."""
