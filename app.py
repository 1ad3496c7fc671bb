"""
Entrypoint da aplicação.

Uso:
  python app.py seed --dados dados.json
  python app.py consumo registrar --cliente 1 --produto 1 --ferramenta 1 --loja 1 --quantidade 15
  python app.py consumo lotes consumos.xlsx
  python app.py alertas listar --ativos
  python app.py painel calibres --dias 7
"""

from consumo.adapters.cli import main

if __name__ == "__main__":
    main()
