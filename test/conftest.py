"""Shared receipt fixtures."""

import pytest


@pytest.fixture
def arabic_receipt():
    """Receipt with every optional section populated."""
    return {
        "logo": True,
        "storeNameArabic": "المتجر الكبير",
        "storeName": "Big Store",
        "storeInfo": {
            "address": "شارع الهرم، الجيزة",
            "phone": "٠١٢٣٤٥٦٧٨٩٠",
        },
        "receiptInfo": {
            "date": "2025-10-01 14:30",
            "receiptNumber": "1234567",
            "cashier": "أحمد",
        },
        "items": [
            {"nameArabic": "كولا", "name": "Cola", "qty": 2, "price": 5.00},
            {"nameArabic": "خبز", "name": "Bread", "qty": 1, "price": 3.50},
            {"nameArabic": "حليب", "name": "Milk", "qty": 3, "price": 8.00},
            {"nameArabic": "شاي", "name": "Tea", "qty": 1, "price": 12.00},
            {"nameArabic": "قهوة", "name": "Coffee", "qty": 2, "price": 25.00},
        ],
        "subtotal": 77.50,
        "tax": 10.85,
        "taxRate": 14,
        "total": 88.35,
        "currency": "EGP",
        "payment": {"method": "Cash", "change": 11.65},
        "thankYouMessageArabic": "شكراً لزيارتكم",
        "thankYouMessage": "Thank you for visiting",
        "barcode": {"value": "1234567890", "format": "CODE128"},
        "website": "www.bigshop.com",
    }


@pytest.fixture
def big_store_receipt():
    """Store name, two items and a total; nothing else optional."""
    return {
        "storeName": "Big Store",
        "items": [
            {"name": "Cola", "qty": 2, "price": 5.00},
            {"name": "Bread", "qty": 1, "price": 3.50},
        ],
        "total": 13.50,
    }
