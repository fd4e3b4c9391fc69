"""Analysis engines: weighted paths, k-core, biconnected components, Infomap."""
