"""Engine modules, leaf-first: rng, resource, loot, ability, combat."""
