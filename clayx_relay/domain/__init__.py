# Domain layer - entities and exceptions for command relay
