"""ORM Models — tables read by the database definition loader."""
