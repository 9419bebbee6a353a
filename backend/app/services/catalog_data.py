"""Seed catalog written by scripts/seed_catalog.py; the market-data job refreshes prices afterwards."""

from app.schemas.catalog import CatalogAsset, CatalogCity


def _stock(ticker, name, name_ar, country, currency, price, change, change_percent):
    return CatalogAsset(
        ticker=ticker, name=name, name_ar=name_ar, category="Stocks",
        country=country, currency=currency, price=price,
        change=change, change_percent=change_percent,
    )


STATIC_ASSETS = [
    # Saudi Arabia
    _stock("2222", "Saudi Arabian Oil Company", "أرامكو السعودية", "SA", "SAR", 28.50, 0.15, 0.53),
    _stock("1120", "Al Rajhi Banking and Investment Corporation", "مصرف الراجحي", "SA", "SAR", 80.00, -0.50, -0.62),
    _stock("1180", "The Saudi National Bank", "البنك الأهلي السعودي", "SA", "SAR", 45.20, 0.20, 0.44),
    _stock("7010", "Saudi Telecom Company", "إس تي سي", "SA", "SAR", 38.10, -0.10, -0.26),
    _stock("2010", "Saudi Basic Industries Corporation", "سابك", "SA", "SAR", 75.50, 0.25, 0.33),
    _stock("1010", "Riyad Bank", "بنك الرياض", "SA", "SAR", 27.00, 0.05, 0.19),

    # UAE
    _stock("IHC", "International Holding Company", "الشركة العالمية القابضة", "AE", "AED", 400.0, -1.00, -0.25),
    _stock("FAB", "First Abu Dhabi Bank P.J.S.C.", "بنك أبوظبي الأول", "AE", "AED", 13.50, 0.0, 0.0),
    _stock("EMAAR", "Emaar Properties PJSC", "إعمار العقارية", "AE", "AED", 7.80, -0.05, -0.64),
    _stock("TAQA", "Abu Dhabi National Energy Company PJSC", "طاقة", "AE", "AED", 3.50, 0.01, 0.29),
    _stock("ADCB", "Abu Dhabi Commercial Bank PJSC", "بنك أبوظبي التجاري", "AE", "AED", 8.90, 0.10, 1.14),

    # Qatar
    _stock("QNBK", "Qatar National Bank (Q.P.S.C.)", "بنك قطر الوطني", "QA", "QAR", 14.00, -0.10, -0.71),
    _stock("IQCD", "Industries Qatar Q.P.S.C.", "صناعات قطر", "QA", "QAR", 12.50, 0.05, 0.40),
    _stock("QIBK", "Qatar Islamic Bank (Q.P.S.C.)", "مصرف قطر الإسلامي", "QA", "QAR", 17.20, 0.0, 0.0),
    _stock("CBQK", "The Commercial Bank (P.S.Q.C.)", "البنك التجاري", "QA", "QAR", 5.50, 0.03, 0.55),
    _stock("QGTS", "Qatar Gas Transport Company Limited (Nakilat)", "ناقلات", "QA", "QAR", 4.10, -0.02, -0.49),

    # Commodities, bonds and savings
    CatalogAsset(
        ticker="GOLD", name="Gold", name_ar="الذهب", category="Gold",
        country="Global", currency="USD", price=2330.0, change=1.25, change_percent=0.70,
    ),
    CatalogAsset(
        ticker="BRENT", name="Brent Crude Oil", name_ar="نفط برنت الخام", category="Other",
        country="Global", currency="USD", price=85.3, change=-0.50, change_percent=-0.58,
    ),
    CatalogAsset(
        ticker="SA-BOND-2030", name="Saudi Arabia Govt. Bond 2030", name_ar="سندات حكومة السعودية 2030",
        category="Bonds", country="Global", currency="USD", price=102.5, change=0.05, change_percent=0.05,
    ),
    CatalogAsset(
        ticker="SUKUK-ISDB", name="Islamic Development Bank Sukuk", name_ar="صكوك بنك التنمية الإسلامي",
        category="Bonds", country="Global", currency="USD", price=100.2, change=0.02, change_percent=0.02,
    ),
    CatalogAsset(
        ticker="SAVINGS-CERT-SAR", name="SAR Savings Certificate", name_ar="شهادة ادخار بالريال السعودي",
        category="SavingsCertificates", country="SA", currency="SAR", price=1.0,
        change=0.0, change_percent=0.0, annual_yield=0.05,
    ),
]


STATIC_CITIES = [
    CatalogCity(city_key="RIYADH", name="Riyadh", name_ar="الرياض", country="SA", price_per_sqm=4500, currency="SAR"),
    CatalogCity(city_key="JEDDAH", name="Jeddah", name_ar="جدة", country="SA", price_per_sqm=3800, currency="SAR"),
    CatalogCity(city_key="DUBAI", name="Dubai", name_ar="دبي", country="AE", price_per_sqm=12000, currency="AED"),
    CatalogCity(city_key="ABUDHABI", name="Abu Dhabi", name_ar="أبو ظبي", country="AE", price_per_sqm=10500, currency="AED"),
    CatalogCity(city_key="DOHA", name="Doha", name_ar="الدوحة", country="QA", price_per_sqm=15000, currency="QAR"),
]


# Curated coverage links per catalog ticker, summarized on request by the AI provider
NEWS_ARTICLES = {
    "2222": [
        "https://www.reuters.com/business/energy/saudi-aramco-hikes-july-crude-prices-asia-2023-06-05/",
        "https://www.bloomberg.com/news/articles/2023-06-05/oil-extends-gains-after-saudi-arabia-pledges-deeper-output-cuts",
    ],
    "2010": [
        "https://www.arabianbusiness.com/industries/energy/sabic-launches-new-sustainable-polymers-at-leading-plastics-conference",
        "https://www.argaam.com/en/article/articledetail/id/1654321",
    ],
    "EMAAR": [
        "https://www.arabianbusiness.com/industries/real-estate/emaar-properties-sees-q1-2024-profit-jump-to-1-1bn",
        "https://www.reuters.com/world/middle-east/dubais-emaar-properties-board-proposes-50-cash-dividend-2023-2024-03-21/",
    ],
    "IHC": [
        "https://www.thenationalnews.com/business/markets/2023/10/26/ihc-reports-18-rise-in-q3-net-profit-on-higher-revenue/",
        "https://www.khaleejtimes.com/business/ihc-to-list-subsidiary-on-adx-second-market",
    ],
}
