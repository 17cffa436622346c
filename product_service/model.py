from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from product_service.errors import NotFoundError, StoreError
from product_service.logs import logger

db = SQLAlchemy()


class Product(db.Model):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Double, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "price": self.price,
        }

    def __repr__(self):
        return f'<Product {self.name}>'


class ProductStore:
    """CRUD operations on the ``products`` table.

    Every statement is built with SQLAlchemy, so values always travel as
    bound parameters. Driver failures roll back the session and surface as
    StoreError; a fetch that matches nothing raises NotFoundError.
    """

    def __init__(self, session):
        self.session = session

    def _fail(self, exc):
        self.session.rollback()
        return StoreError(str(exc))

    def fetch(self, product_id):
        try:
            product = self.session.get(Product, product_id)
        except SQLAlchemyError as e:
            raise self._fail(e) from e
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def list_all(self):
        try:
            return list(self.session.execute(db.select(Product)).scalars())
        except SQLAlchemyError as e:
            raise self._fail(e) from e

    def create(self, product):
        """Insert ``product`` and return the generated id.

        A caller-supplied id is discarded.
        """
        row = Product(name=product.name, quantity=product.quantity, price=product.price)
        try:
            self.session.add(row)
            self.session.flush()
            last_id = row.id
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail(e) from e

        product.id = last_id
        logger.info(f"The last inserted row id: {last_id}", extra={'product_id': last_id})
        return last_id

    def update(self, product_id, product):
        """Overwrite name, quantity and price; returns the affected row count."""
        statement = (
            db.update(Product)
            .where(Product.id == product_id)
            .values(name=product.name, quantity=product.quantity, price=product.price)
        )
        try:
            result = self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail(e) from e

        if result.rowcount == 0:
            logger.warning("Update matched no rows", extra={'product_id': product_id})
        return result.rowcount

    def delete(self, product_id):
        """Remove the row; returns the affected row count."""
        statement = db.delete(Product).where(Product.id == product_id)
        try:
            result = self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail(e) from e

        if result.rowcount == 0:
            logger.warning("Delete matched no rows", extra={'product_id': product_id})
        return result.rowcount


def init_schema():
    """Create the products table if it does not exist."""
    db.create_all()
