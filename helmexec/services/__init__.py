"""Services: process execution, version detection, secrets and the helm facade."""
