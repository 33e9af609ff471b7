from uuid import UUID, uuid4

from inventory_catalog.models.brand import Brand
from inventory_catalog.models.customer import Customer
from inventory_catalog.models.product import Product
from inventory_catalog.models.table_availability import TableAvailability
from tests.admin.base import CatalogApiBase


class ProductApiTests(CatalogApiBase):
    def _seed_brands(self, *names: str, active_table: bool = True) -> dict[str, str]:
        with self.SessionLocal() as db:
            db.add(TableAvailability(table_name="brands", is_active=active_table))
            rows = [Brand(company_id=self.company_id, name=name) for name in names]
            db.add_all(rows)
            db.add(Brand(company_id=uuid4(), name="Outra Empresa"))
            db.add(Brand(company_id=self.company_id, name="Inativa", is_active=False))
            db.commit()
            return {row.name: str(row.id) for row in rows}

    def _phone_category(self) -> dict:
        category = self._create_category(
            "Celulares",
            auto_name_enabled=True,
            auto_name_template="{modelo}, {ram}/{armazenamento} - {versao}",
        )
        for name in ("imei1", "storage"):
            self.client.patch(
                f"/api/admin/categories/{category['id']}/builtin-fields/{name}",
                headers=self._auth_headers(),
                json={"requirement": "required"},
            )
        return category

    def test_table_options_read_enabled_lookup_table(self):
        self._seed_brands("Xiaomi", "Apple")
        response = self.client.get(
            "/api/admin/table-options",
            headers=self._auth_headers(),
            params={"table_name": "brands"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual([option["label"] for option in response.json()["options"]], ["Apple", "Xiaomi"])

        descending = self.client.get(
            "/api/admin/table-options",
            headers=self._auth_headers(),
            params={"table_name": "brands", "value_column": "name", "order_by": "name desc"},
        )
        self.assertEqual([option["value"] for option in descending.json()["options"]], ["Xiaomi", "Apple"])

    def test_table_options_reject_disabled_or_unknown_tables(self):
        self._seed_brands("Apple", active_table=False)
        disabled = self.client.get(
            "/api/admin/table-options", headers=self._auth_headers(), params={"table_name": "brands"}
        )
        self.assertEqual(disabled.status_code, 403)

        unknown = self.client.get(
            "/api/admin/table-options", headers=self._auth_headers(), params={"table_name": "fornecedores"}
        )
        self.assertEqual(unknown.status_code, 404)

        bad_column = self.client.get(
            "/api/admin/table-options",
            headers=self._auth_headers(),
            params={"table_name": "brands", "label_column": "name;drop"},
        )
        self.assertEqual(bad_column.status_code, 400)

    def test_create_product_validates_specs_and_generates_name(self):
        category = self._phone_category()
        payload = {
            "category_id": category["id"],
            "specs": {"imei1": "12345", "model": "Redmi Note 14"},
            "price_retail": 150000,
        }
        invalid = self.client.post("/api/admin/products", headers=self._auth_headers(), json=payload)
        self.assertEqual(invalid.status_code, 400)
        errors = invalid.json()["detail"]["errors"]
        self.assertEqual(set(errors), {"imei1", "storage"})
        self.assertEqual(errors["storage"], "Armazenamento é obrigatório")

        payload["specs"] = {
            "imei1": "356938035643809",
            "storage": "256GB",
            "ram": "6GB",
            "version": "Global",
            "model": "Redmi Note 14",
        }
        payload["sku"] = " rn14-256 "
        created = self.client.post("/api/admin/products", headers=self._auth_headers(), json=payload)
        self.assertEqual(created.status_code, 201, created.text)
        body = created.json()
        self.assertEqual(body["name"], "Redmi Note 14, 6GB/256GB - Global")
        self.assertEqual(body["sku"], "RN14-256")
        self.assertEqual(body["responsible"], "admin@example.com")

    def test_table_relation_value_must_exist_in_lookup(self):
        brands = self._seed_brands("Apple", "Samsung")
        field = self._create_field(
            "marca",
            "Marca",
            field_type="table_relation",
            table_config={"table_name": "brands"},
        )
        category = self._create_category("Tablets")
        self._add_to_category(category["id"], field["id"], "required")

        wrong = self.client.post(
            "/api/admin/products",
            headers=self._auth_headers(),
            json={"name": "Galaxy Tab", "category_id": category["id"], "specs": {"marca": str(uuid4())}},
        )
        self.assertEqual(wrong.status_code, 400)
        self.assertEqual(wrong.json()["detail"]["errors"]["marca"], "Opção inválida para Marca")

        ok = self.client.post(
            "/api/admin/products",
            headers=self._auth_headers(),
            json={"name": "Galaxy Tab", "category_id": category["id"], "specs": {"marca": brands["Samsung"]}},
        )
        self.assertEqual(ok.status_code, 201, ok.text)
        self.assertEqual(ok.json()["name"], "Galaxy Tab")

    def test_update_product_and_missing_name(self):
        created = self.client.post(
            "/api/admin/products",
            headers=self._auth_headers(),
            json={"name": "Cabo USB-C", "price_retail": 2990},
        )
        self.assertEqual(created.status_code, 201, created.text)
        product_id = created.json()["id"]

        updated = self.client.patch(
            f"/api/admin/products/{product_id}",
            headers=self._auth_headers(),
            json={"name": "Cabo USB-C 2m", "price_retail": 3490, "discount_percentage": 10},
        )
        self.assertEqual(updated.status_code, 200, updated.text)
        with self.SessionLocal() as db:
            row = db.get(Product, UUID(product_id))
            self.assertEqual(row.name, "Cabo USB-C 2m")
            self.assertEqual(row.price_retail, 3490)
            self.assertEqual(row.discount_percentage, 10)

        nameless = self.client.patch(
            f"/api/admin/products/{product_id}",
            headers=self._auth_headers(),
            json={"name": "  "},
        )
        self.assertEqual(nameless.status_code, 400)
        self.assertIn("name", nameless.json()["detail"]["errors"])

        other_company = self.client.patch(
            f"/api/admin/products/{product_id}",
            headers=self._auth_headers(company_id=uuid4()),
            json={"name": "X"},
        )
        self.assertEqual(other_company.status_code, 404)

    def test_preview_tier_only_for_admin_customers(self):
        with self.SessionLocal() as db:
            admin_customer = Customer(company_id=self.company_id, name="Loja", customer_type="ADMIN")
            buyer = Customer(company_id=self.company_id, name="Ana", customer_type="wholesale")
            db.add_all([admin_customer, buyer])
            db.commit()
            admin_id, buyer_id = str(admin_customer.id), str(buyer.id)

        response = self.client.put(
            f"/api/admin/customers/{admin_id}/preview-tier",
            headers=self._auth_headers(),
            json={"preview_type": "resale"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["effective_tier"], "resale")

        cleared = self.client.put(
            f"/api/admin/customers/{admin_id}/preview-tier",
            headers=self._auth_headers(),
            json={"preview_type": None},
        )
        self.assertEqual(cleared.json()["effective_tier"], "retail")

        invalid = self.client.put(
            f"/api/admin/customers/{admin_id}/preview-tier",
            headers=self._auth_headers(),
            json={"preview_type": "vip"},
        )
        self.assertEqual(invalid.status_code, 422)

        not_admin = self.client.put(
            f"/api/admin/customers/{buyer_id}/preview-tier",
            headers=self._auth_headers(),
            json={"preview_type": "resale"},
        )
        self.assertEqual(not_admin.status_code, 400)
