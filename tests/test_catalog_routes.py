import pytest

from app.services.catalog import ProductNotFound, SqlCatalog
from app.version import API_PREFIX


def test_seed_catalog_and_list_products(client):
    seeded = client.post('/__seed/catalog').get_json()['data']
    assert seeded == {'categories': 3, 'products': 4}
    again = client.post('/__seed/catalog').get_json()['data']
    assert again == {'categories': 0, 'products': 0}

    resp = client.get(f'{API_PREFIX}/products')
    assert resp.status_code == 200
    names = [p['name'] for p in resp.get_json()['data']]
    assert len(names) == 4
    assert names == sorted(names)


def test_category_filter_includes_subcategories(client):
    client.post('/__seed/catalog')
    resp = client.get(f'{API_PREFIX}/products?category_id=cat-telas')
    ids = {p['id'] for p in resp.get_json()['data']}
    assert ids == {'prd-dryfit', 'prd-gabardina'}


def test_product_detail_reports_effective_variant_stock(client):
    client.post('/__seed/catalog')
    data = client.get(f'{API_PREFIX}/products/prd-dryfit').get_json()['data']
    variants = {v['name']: v for v in data['variants']}
    assert variants['1.50 m']['effective_stock'] == 25
    assert variants['1.80 m']['stock'] is None
    assert variants['1.80 m']['effective_stock'] == data['stock'] == 40


def test_inactive_or_unknown_product_is_404(client, seed_product):
    seed_product(id='OLD', price=1, stock=1, active=False)
    assert client.get(f'{API_PREFIX}/products/OLD').status_code == 404
    assert client.get(f'{API_PREFIX}/products/nope').status_code == 404
    assert client.get(f'{API_PREFIX}/products').get_json()['data'] == []


def test_categories(client):
    client.post('/__seed/catalog')
    data = client.get(f'{API_PREFIX}/categories').get_json()['data']
    assert {c['slug'] for c in data} == {'telas', 'telas-deportivas', 'merceria'}


def test_seed_catalog_cli(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['seed-catalog'])
    assert result.exit_code == 0
    assert 'Seeded 3 categories and 4 products.' in result.output


def test_update_product_with_unknown_variant_writes_nothing(client, seed_product):
    seed_product(id='B', name='Tela', price=5, stock=5, variants=[{'name': 'L', 'price': 5, 'stock': 3}])
    seed_product(id='C', name='Hilo', price=1, stock=9)
    catalog = SqlCatalog()
    with pytest.raises(ProductNotFound):
        catalog.update_product('B', {'stock': 1, 'variants': {'L': 0, 'XL': 2}})
    catalog.update_product('C', {'stock': 8})

    product = catalog.fetch_product('B')
    assert product.stock == 5
    assert product.find_variant('L').stock == 3
    assert catalog.fetch_product('C').stock == 8
