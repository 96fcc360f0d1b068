"""Response serializers."""
