"""Text layer of a Dutch Flying Blue activity statement used across the tests."""

SAMPLE_STATEMENT_TEXT = """
DEGRAAF REMCO
Flying Blue-nummer: 4629294326
PLATINUM
Activiteitengeschiedenis 248928 Miles 183 XP 40 UXP
10 dec 2025 Hotel - BOOKING.COM WITH KLM 367 Miles 0 XP
BOOKING.COM WITH KLM 367 Miles 0 XP
op 21 nov 2025
10 dec 2025 Hotel - BOOKING.COM WITH KLM 934 Miles 0 XP
BOOKING.COM WITH KLM 934 Miles 0 XP
op 22 nov 2025
4 dec 2025 Hotel - ALL- Accor Live Limitless MILES+POINTS 600 Miles 0 XP
ALL- Accor Live Limitless MILES+POINTS 600 Miles 0 XP
op 3 dec 2025
4 dec 2025 Hotel - ALL- Accor Live Limitless MILES+POINTS 2000 Miles 0 XP
ALL- Accor Live Limitless MILES+POINTS 2000 Miles 0 XP
op 3 dec 2025
30 nov 2025 RevPoints to Miles 518 Miles 0 XP
REVOLUT (REV10) 518 Miles 0 XP
op 30 nov 2025
30 nov 2025 Mijn reis naar Berlijn 1312 Miles 16 XP 16 UXP
AMS - BER KL1775 gespaarde Miles op basis van bestede euro's 276 Miles 5 XP 5 UXP
op 29 nov 2025
Sustainable Aviation Fuel 176 Miles 3 XP 3 UXP
op 29 nov 2025
Sustainable Aviation Fuel 176 Miles 3 XP 3 UXP
op 29 nov 2025
BER - AMS KL1780 gespaarde Miles op basis van bestede euro's 684 Miles 5 XP 5 UXP
op 30 nov 2025
29 nov 2025 Mijn reis naar Oslo 2980 Miles 30 XP
AMS - OSL SK0822 gespaarde Miles, op basis van reisafstand en boekingsklasse 1490 Miles 15 XP
op 28 nov 2025
OSL - AMS SK0827 gespaarde Miles, op basis van reisafstand en boekingsklasse 1490 Miles 15 XP
op 28 nov 2025
26 nov 2025 Miles overdragen - Flying Blue Family 1000 Miles 0 XP
Extra info: Miles van CHRISTY ZEDDEMAN 1000 Miles 0 XP
op 26 nov 2025
25 nov 2025 Mijn reis naar Amsterdam 250 Miles 0 XP
KEF – AMS TRANSAVIA HOLLAND – gespaarde Miles op basis van Transavia-tarief 250 Miles 0 XP
op 24 nov 2025
25 nov 2025 Mijn reis naar Amsterdam 250 Miles 5 XP
KEF – AMS TRANSAVIA HOLLAND – gespaarde Miles op basis van Transavia-tarief 250 Miles 5 XP
op 24 nov 2025
22 nov 2025 Mijn reis naar Reykjavik 250 Miles 0 XP
AMS – KEF TRANSAVIA HOLLAND – gespaarde Miles op basis van Transavia-tarief 250 Miles 0 XP
op 21 nov 2025
22 nov 2025 Mijn reis naar Reykjavik 250 Miles 5 XP
AMS – KEF TRANSAVIA HOLLAND – gespaarde Miles op basis van Transavia-tarief 250 Miles 5 XP
op 21 nov 2025
17 nov 2025 Mijn reis naar Bangkok 15882 Miles 24 XP 24 UXP
AMS - BKK KL0843 gespaarde Miles op basis van bestede euro's 4400 Miles 12 XP 12 UXP
op 8 nov 2025
Upgrade Economy to Premium Economy 0 Miles 0 XP
op 8 nov 2025
BKK - AMS KL0844 gespaarde Miles op basis van bestede euro's 3490 Miles 12 XP 12 UXP
op 15 nov 2025
Upgrade Economy to Business 7992 Miles 0 XP
op 15 nov 2025
17 nov 2025 Subscribe to Miles Complete EUR 17000 Miles 0 XP
Buy, Gift, Transfer, Subscribe to Miles 17000 Miles 0 XP
op 17 nov 2025
17 nov 2025 AMERICAN EXPRESS PLATINUM CARD 10811 Miles 0 XP
AMERICAN EXPRESS 10811 Miles 0 XP
op 15 nov 2025
17 nov 2025 AMERICAN EXPRESS PLATINUM CARD AF-KLM SPEND 15336 Miles 0 XP
AMERICAN EXPRESS 15336 Miles 0 XP
op 15 nov 2025
8 okt 2025 Surplus XP beschikbaar op XP-teller 0 Miles 23 XP
Aantal behaalde XP in de vorige kwalificatieperiode eindigend op 07/10/2025 en meegenomen naar de nieuwe kwalificatieperiode beginnend op 08/10/2025 0 Miles 23 XP
op 8 okt 2025
8 okt 2025 Aftrek XP-teller 0 Miles -300 XP
Qualification period ended / Platinum reached 0 Miles -300 XP
op 8 okt 2025
"""
