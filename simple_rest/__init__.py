"""Single-backend HTTP forwarder with health probes and request metrics."""
