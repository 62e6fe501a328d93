"""Featured video core: records, matching, payload resolution and meta sync."""
