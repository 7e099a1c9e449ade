"""Pure types, validators and grouping for transfer CSV exchange."""
