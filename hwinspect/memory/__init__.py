"""Memory areas, memory modules and CPU caches."""