"""Cypher for the four aggregation queries."""

# One row per beer with its denormalized joins. id(beer) is folded into
# the node map so rows line up with the rating keys in redis.
BEERS = """
MATCH (brewery:brewery)-[:brewed]->(beer:beer)-[:poured_at]->(session:session)
OPTIONAL MATCH (beer)-[:is_style]->(superstyle:superstyle)
OPTIONAL MATCH (superstyle)-[:in_metastyle]->(metastyle:metastyle)
RETURN beer {.*, id: id(beer)} AS beer,
       brewery.name AS brewery,
       session.name AS session,
       brewery.location AS location,
       superstyle.name AS superstyle,
       metastyle.name AS metastyle
"""

BREWERIES = "MATCH (brewery:brewery) RETURN brewery"

SUPERSTYLES = "MATCH (superstyle:superstyle) RETURN superstyle"

METASTYLES = "MATCH (metastyle:metastyle) RETURN metastyle"
