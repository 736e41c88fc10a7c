"""Application – event store, bus, middleware, sagas and projections."""
