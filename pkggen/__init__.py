"""pkggen: scaffolding generator for modular Laravel-style packages."""
