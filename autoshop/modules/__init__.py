"""Self-contained modules behind the Autoshop request pipeline."""
